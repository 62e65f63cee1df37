#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from stitchup.core.config import IS_DEV  # noqa: E402
from stitchup.core.database import Base, SessionLocal, engine  # noqa: E402
import stitchup.models  # noqa: E402,F401
from stitchup.services.accounts import find_user_for_identity, signup  # noqa: E402
from stitchup.services.otp import VerifiedIdentity, external_uid_for, normalize_phone  # noqa: E402
from stitchup.services.tailors import save_profile  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a tailor account for local development.")
    parser.add_argument("--phone", required=True, help="Tailor phone number")
    parser.add_argument("--name", required=True, help="Shop name")
    parser.add_argument("--pricing", help='Rate card as JSON, e.g. \'{"Pant / Trousers - Hemming": 150}\'')
    parser.add_argument("--heavy", type=int, default=0, help="Heavy tasks in the queue")
    parser.add_argument("--light", type=int, default=0, help="Light tasks in the queue")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Allow running outside the dev environment",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not IS_DEV and not args.force:
        print("Seeding is only enabled in dev. Use --force to override.")
        return 1

    try:
        phone = normalize_phone(args.phone)
        pricing = json.loads(args.pricing) if args.pricing else None
    except ValueError as exc:
        print(str(exc))
        return 1

    Base.metadata.create_all(bind=engine)
    identity = VerifiedIdentity(uid=external_uid_for(phone), phone=phone)
    db = SessionLocal()
    try:
        tailor = find_user_for_identity(db, identity)
        created = tailor is None
        if created:
            tailor = signup(db, identity, name=args.name, role="tailor")
        elif tailor.role != "tailor":
            print(f"Phone {phone} belongs to a {tailor.role} account")
            return 1
        tailor.full_name = args.name
        tailor = save_profile(
            db,
            tailor,
            {"pricing": pricing, "heavy_tasks": args.heavy, "light_tasks": args.light},
        )
        tailor_id = tailor.id
        price_from = tailor.price_from
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Tailor {action}: id={tailor_id} phone={phone} price_from={price_from}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
