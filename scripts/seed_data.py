#!/usr/bin/env python3
"""
Database seeding script for development.
Creates demo profiles, an organization with departments, projects and tasks.

All demo accounts share the password ``taskhub-demo``.
"""

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

# Add parent directory to path to import our modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from taskhub.database import async_engine, Base, AsyncSessionLocal
from taskhub.models import (
    Department,
    MemberRole,
    Organization,
    OrganizationMember,
    Profile,
    Project,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
)
from taskhub.services.auth_service import AuthService

DEMO_PASSWORD = "taskhub-demo"


async def create_tables():
    """Create all database tables"""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✓ Database tables created")


async def seed_data():
    """Seed the database with sample data"""
    password_hash = AuthService.hash_password(DEMO_PASSWORD)

    async with AsyncSessionLocal() as session:
        try:
            # Create profiles
            alice = Profile(
                email="alice@acme-demo.com",
                full_name="Alice Carter",
                department="Engineering",
                password_hash=password_hash,
            )
            bob = Profile(
                email="bob@acme-demo.com",
                full_name="Bob Nguyen",
                department="Design",
                password_hash=password_hash,
            )
            carol = Profile(
                email="carol@acme-demo.com",
                full_name="Carol Diaz",
                password_hash=password_hash,
            )
            session.add_all([alice, bob, carol])
            await session.flush()
            print("✓ Created profiles")

            # Create organization with its owner and members
            acme = Organization(name="Acme Corp", description="Demo organization")
            session.add(acme)
            await session.flush()
            session.add_all([
                OrganizationMember(organization_id=acme.id, user_id=alice.id, role=MemberRole.OWNER.value),
                OrganizationMember(organization_id=acme.id, user_id=bob.id, role=MemberRole.ADMIN.value),
                OrganizationMember(
                    organization_id=acme.id, user_id=carol.id, role=MemberRole.MEMBER.value, title="Contractor"
                ),
            ])
            print("✓ Created organization and members")

            engineering = Department(organization_id=acme.id, name="Engineering")
            session.add(engineering)
            await session.flush()
            platform = Department(organization_id=acme.id, name="Platform", parent_id=engineering.id)
            design = Department(organization_id=acme.id, name="Design")
            session.add_all([platform, design])
            await session.flush()
            print("✓ Created departments")

            # Create projects
            roadmap = Project(
                name="Roadmap Q1",
                description="First quarter deliverables",
                status=ProjectStatus.IN_PROGRESS.value,
                start_date=date.today() - timedelta(days=14),
                end_date=date.today() + timedelta(days=76),
                budget=25000,
                manager_id=alice.id,
            )
            website = Project(
                name="Website refresh",
                status=ProjectStatus.PLANNING.value,
                manager_id=bob.id,
            )
            session.add_all([roadmap, website])
            await session.flush()
            print("✓ Created projects")

            # Create tasks, one per board column
            session.add_all([
                Task(
                    title="Write launch plan",
                    status=TaskStatus.TODO.value,
                    priority=TaskPriority.HIGH.value,
                    due_date=date.today() + timedelta(days=7),
                    project_id=roadmap.id,
                    department_id=engineering.id,
                    assignee_id=alice.id,
                    creator_id=alice.id,
                    organization_id=acme.id,
                ),
                Task(
                    title="Migrate build pipeline",
                    status=TaskStatus.IN_PROGRESS.value,
                    priority=TaskPriority.MEDIUM.value,
                    project_id=roadmap.id,
                    department_id=platform.id,
                    assignee_id=carol.id,
                    creator_id=alice.id,
                    organization_id=acme.id,
                ),
                Task(
                    title="Review homepage mockups",
                    status=TaskStatus.IN_REVIEW.value,
                    priority=TaskPriority.LOW.value,
                    project_id=website.id,
                    department_id=design.id,
                    assignee_id=bob.id,
                    creator_id=bob.id,
                    organization_id=acme.id,
                ),
                Task(
                    title="Set up issue tracker",
                    status=TaskStatus.DONE.value,
                    priority=TaskPriority.URGENT.value,
                    creator_id=alice.id,
                    organization_id=acme.id,
                ),
            ])
            await session.flush()
            print("✓ Created tasks")

            await session.commit()
            print("\n✅ Database seeding completed successfully!")

            # Print summary
            print("\nSummary:")
            print("  - Profiles: 3")
            print("  - Organizations: 1")
            print("  - Departments: 3")
            print("  - Projects: 2")
            print("  - Tasks: 4")
            print(f"\nSign in as alice@acme-demo.com / {DEMO_PASSWORD}")

        except Exception as e:
            await session.rollback()
            print(f"❌ Error seeding database: {e}")
            raise


async def main():
    """Main function"""
    print("Starting database seeding...\n")

    if "--create-tables" in sys.argv:
        await create_tables()

    await seed_data()


if __name__ == "__main__":
    asyncio.run(main())
