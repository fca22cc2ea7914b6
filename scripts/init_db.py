import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.backoffice.constants import Profile
from app.backoffice.models import City, Customer, State
from scripts._db_utils import script_session

# State name -> city names
SEED_LOCATIONS = {
    "Minas Gerais": ("Uberlândia", "Belo Horizonte"),
    "São Paulo": ("São Paulo", "Campinas"),
}


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed states, cities and the admin customer in an idempotent way.
    Does NOT overwrite an existing admin's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@backoffice.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///backoffice.db").strip()

    with script_session(db_url) as s:
        for state_name, city_names in SEED_LOCATIONS.items():
            state = s.query(State).filter(State.name == state_name).one_or_none()
            if not state:
                state = State(name=state_name)
                s.add(state)
                s.flush()
            for city_name in city_names:
                exists = (
                    s.query(City)
                    .filter(City.state_id == state.id, City.name == city_name)
                    .one_or_none()
                )
                if not exists:
                    s.add(City(name=city_name, state_id=state.id))

        admin = s.query(Customer).filter(Customer.email == admin_email).one_or_none()
        if not admin:
            admin = Customer(
                name="Administrator",
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
            )
            s.add(admin)
        admin.add_profile(Profile.CLIENT)
        admin.add_profile(Profile.ADMIN)


def main() -> None:
    seed_only()
    print("Seed complete.")


if __name__ == "__main__":
    main()
