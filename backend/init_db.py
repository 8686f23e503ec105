"""
Database initialization script
Run this to create tables and seed a demo company for local analytics runs
"""
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from timeflow.core.database import engine, Base, SessionLocal
from timeflow.models import (
    Company, Membership, MembershipRole, Profile, ScheduledHours, TimeEvent, WorkSession,
)


def init_db():
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created successfully")


def seed_data():
    """Seed a demo company: one owner, two workers, two weeks of fichajes"""
    db = SessionLocal()

    try:
        print("\nSeeding initial data...")

        company = db.query(Company).filter(Company.name == "Demo Company").first()
        if company:
            print("✓ Demo company already exists, skipping")
            return

        company = Company(name="Demo Company", timezone="Europe/Madrid")
        owner = Profile(email="owner@demo.test", full_name="Demo Owner")
        workers = [
            Profile(email="ana@demo.test", full_name="Ana García"),
            Profile(email="luis@demo.test", full_name="Luis Pérez"),
        ]
        db.add_all([company, owner, *workers])
        db.flush()

        db.add(Membership(company_id=company.id, user_id=owner.id, role=MembershipRole.OWNER.value))
        for w in workers:
            db.add(Membership(company_id=company.id, user_id=w.id, role=MembershipRole.WORKER.value))
        print("✓ Owner and workers created")

        today = date.today()
        for offset in range(14, 0, -1):
            day = today - timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            for i, w in enumerate(workers):
                # 07:00 UTC = 09:00 Madrid (summer); Luis drifts a few minutes
                clock_in = datetime(day.year, day.month, day.day, 7, i * (offset % 7), tzinfo=timezone.utc)
                clock_out = clock_in + timedelta(hours=8, minutes=30)
                db.add(ScheduledHours(
                    company_id=company.id, user_id=w.id, date=day,
                    expected_hours=8, start_time="09:00", end_time="17:30",
                ))
                db.add(TimeEvent(company_id=company.id, user_id=w.id, event_type="clock_in", event_time=clock_in))
                db.add(TimeEvent(company_id=company.id, user_id=w.id, event_type="clock_out", event_time=clock_out))
                db.add(WorkSession(
                    company_id=company.id, user_id=w.id,
                    clock_in_time=clock_in, clock_out_time=clock_out,
                    total_pause_duration=30 * 60 * 1000,
                ))
        print("✓ Schedules and fichajes created")

        db.commit()
        print("\n✓ Database seeded successfully!")
        print(f"\nCompany id: {company.id}")
        print(f"Worker ids: {', '.join(w.id for w in workers)}")

    except Exception as e:
        print(f"\n✗ Error seeding data: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 60)
    print("TimeFlow Analytics - Database Initialization")
    print("=" * 60)

    init_db()
    seed_data()
