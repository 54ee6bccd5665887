"""
Demo data setup script - admin account and one fully planned wedding
"""
import asyncio
from datetime import date, timedelta

from sqlalchemy import select

from jourj.database import AsyncSessionLocal, create_tables
from jourj.models import User, Event, Person, Vendor, Task, TimelineItem
from jourj.api.auth import get_password_hash
from jourj.utils.helpers import calculate_end_time


async def seed_demo():
    """Create tables and seed a demo wedding"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == "admin@jourj.fr"))
        admin = result.scalar_one_or_none()
        if not admin:
            admin = User(
                email="admin@jourj.fr",
                full_name="Admin Jour J",
                hashed_password=get_password_hash("admin123"),
                is_admin=True,
            )
            session.add(admin)
            await session.flush()

        result = await session.execute(select(Event).where(Event.name == "Mariage Claire & Hugo"))
        if result.scalar_one_or_none():
            print("Demo wedding already exists")
            await session.commit()
            return

        event = Event(
            name="Mariage Claire & Hugo",
            event_date=date.today() + timedelta(days=90),
            location="Château de Vaux, Maincy",
            owner_id=admin.id,
        )
        session.add(event)
        await session.flush()

        people = {
            role: Person(event_id=event.id, name=name, role=role)
            for role, name in [
                ("bride", "Claire"),
                ("groom", "Hugo"),
                ("best-man", "Antoine"),
                ("maid-of-honor", "Julie"),
            ]
        }
        vendors = {
            service: Vendor(event_id=event.id, name=name, service_type=service, contract_status="signed")
            for service, name in [
                ("photographer", "Studio Lumière"),
                ("caterer", "Traiteur Dupont"),
                ("dj", "DJ Max"),
            ]
        }
        session.add_all([*people.values(), *vendors.values()])
        await session.flush()

        # (title, category, duration, people, vendor)
        steps = [
            ("Coiffure et maquillage", "Préparation", 120, ["bride", "maid-of-honor"], None),
            ("Habillage du marié", "Préparation", 45, ["groom", "best-man"], None),
            ("Photos de couple", "Photos", 60, ["bride", "groom"], "photographer"),
            ("Cérémonie laïque", "Cérémonie", 60, ["bride", "groom", "best-man", "maid-of-honor"], None),
            ("Vin d'honneur", "Réception", 90, [], "caterer"),
            ("Dîner", "Réception", 150, [], "caterer"),
            ("Ouverture du bal", "Réception", 30, ["bride", "groom"], "dj"),
        ]
        start = "10:00"
        for position, (title, category, duration, roles, vendor) in enumerate(steps):
            session.add(TimelineItem(
                event_id=event.id,
                title=title,
                time=start,
                duration=duration,
                sort_order=position,
                category=category,
                assigned_person_ids=[people[r].id for r in roles],
                assigned_vendor_ids=[vendors[vendor].id] if vendor else [],
            ))
            start = calculate_end_time(start, duration)

        session.add_all([
            Task(event_id=event.id, title="Confirmer le menu", priority="high",
                 assigned_vendor_id=vendors["caterer"].id),
            Task(event_id=event.id, title="Envoyer la playlist", priority="medium",
                 assigned_vendor_id=vendors["dj"].id),
            Task(event_id=event.id, title="Récupérer les alliances", priority="high",
                 assigned_person_id=people["groom"].id),
            Task(event_id=event.id, title="Préparer le discours", priority="low",
                 assigned_person_id=people["best-man"].id),
            Task(event_id=event.id, title="Essayage de la robe", priority="medium", status="completed",
                 assigned_person_id=people["bride"].id),
        ])

        await session.commit()
        print("Demo wedding created")

    print("\nDefault login:")
    print("  Email: admin@jourj.fr")
    print("  Password: admin123")


if __name__ == "__main__":
    asyncio.run(seed_demo())
