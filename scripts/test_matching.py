#!/usr/bin/env python3
"""
Matching & Triage Smoke Script

Runs the decision core against sample data without a database:
1. Ranks a small opportunity catalog (provider if configured, else heuristic)
2. Triages a few sample check-in messages

Run: python scripts/test_matching.py
"""
import sys
sys.path.insert(0, '.')

from datetime import date, timedelta

from unibridge.core.config import get_settings
from unibridge.schemas.schemas import Mood, Opportunity
from unibridge.services import build_services
from unibridge.services.wellness_service import compose_message


def sample_opportunities():
    today = date.today()
    return [
        Opportunity(id="1", type="internship", title="Frontend Engineering Intern",
                    organization="Paystack", deadline=today + timedelta(days=9),
                    skills=["react", "typescript", "sql"], location="Lagos", is_remote=True,
                    tags=["tech"]),
        Opportunity(id="2", type="scholarship", title="STEM Excellence Scholarship",
                    organization="MTN Foundation", deadline=today + timedelta(days=45),
                    requirements=["Minimum CGPA of 4.0", "Nigerian citizen"], tags=["stem"]),
        Opportunity(id="3", type="gig", title="Data Entry Gig", organization="Local NGO",
                    deadline=today + timedelta(days=120), skills=["excel"], location="Abuja"),
        Opportunity(id="4", type="grant", title="Student Startup Grant", organization="Tony Elumelu Foundation",
                    deadline=today - timedelta(days=1), tags=["entrepreneurship"]),
    ]


def main():
    services = build_services(get_settings())

    print("\n[1] Ranking sample opportunities...")
    profile = {"skills": ["React", "TypeScript"], "interests": ["internship", "stem"],
               "location": "Lagos", "gpa": 3.8}
    for match in services.ranking_engine.rank(profile, sample_opportunities()):
        print(f"    {match.score:.3f}  {match.opportunity.title:<32} {match.reason}")

    print("\n[2] Triaging sample check-ins...")
    samples = [
        ("I'm stressed about my exams", Mood.stressed),
        ("I feel overwhelmed with deadlines", Mood.anxious),
        ("I'm having trouble focusing", Mood.neutral),
    ]
    for message, mood in samples:
        decision = services.triage_classifier.triage(message, mood)
        flag = "🚨 URGENT" if decision.urgent else "✅ routine"
        print(f"\n    {flag}: {message!r} ({mood.value})")
        for line in compose_message(decision).split("\n\n"):
            print(f"      {line}")

    print("\nDone.")


if __name__ == "__main__":
    main()
