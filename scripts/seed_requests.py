"""
Seed a few demo loan requests covering every status.
Run: python -m scripts.seed_requests (from the project root).
"""
import asyncio
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import AsyncSessionLocal, engine, init_db, is_single_writer
import models  # noqa: F401
from schemas.loan_request import LoanStatus
from services.admin_actions import transition
from services.intake import RequestIntake
from services.store import RecordStore


DEMO_APPLICANTS = [
    {
        "profile": {
            "applicant_name": "Asha Verma",
            "mobile_number": "9876543210",
            "pan_number": "ABCDE1234F",
            "aadhaar_number": "123456789012",
        },
        "top_ups": [
            {"amount": 500, "purpose": "Books", "path": [LoanStatus.APPROVED, LoanStatus.DISBURSED]},
            {"amount": 1200, "purpose": "Exam fee", "path": []},
        ],
    },
    {
        "profile": {
            "applicant_name": "Rahul Nair",
            "mobile_number": "9123456780",
            "pan_number": "PQRSX6789K",
            "aadhaar_number": "987654321098",
        },
        "top_ups": [
            {"amount": 800, "purpose": None, "path": [LoanStatus.REJECTED]},
            {"amount": 300, "purpose": "Travel", "path": [LoanStatus.APPROVED, LoanStatus.DISBURSED, LoanStatus.COMPLETED]},
        ],
    },
]


async def seed():
    await init_db()
    store = RecordStore(AsyncSessionLocal, serialize_sessions=is_single_writer(engine))
    intake = RequestIntake(store)
    for data in DEMO_APPLICANTS:
        profile = data["profile"]
        existing = await store.query_by_mobile(profile["mobile_number"])
        if existing:
            print(f"Applicant {profile['mobile_number']} already exists, skipping")
            continue
        await intake.submit_profile(profile)
        for top_up in data["top_ups"]:
            record = await intake.submit_top_up({
                "mobile_number": profile["mobile_number"],
                "amount": top_up["amount"],
                "purpose": top_up["purpose"],
            })
            for status in top_up["path"]:
                record = await transition(store, record.id, status)
        print(f"Seeded applicant: {profile['applicant_name']}")
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
