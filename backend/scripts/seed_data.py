"""Seed the database with the feedback surveys, their questions and demo users."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from datetime import date

from survey_insights.database import SessionLocal, engine, Base
import survey_insights.models  # noqa: F401

from survey_insights.models.user import User
from survey_insights.models.survey import Survey, Question

LOSS_STAGES = [
    "Initial Inquiry",
    "Application Started",
    "Document Collection",
    "Review Process",
    "Decision Stage",
]

# Survey 1 question ids are fixed; the analytics dashboard maps metrics onto them.
MANAGER_QUESTIONS = [
    dict(id=57, section="Time Allocation", question_type="percentage",
         question_text="How much time do you spend on strategic planning vs. system problem-solving?",
         options=["Strategic planning", "System problem-solving", "Other"],
         validation_rules={"sum_to_100": True}, analysis_tags="time,management,strategic"),
    dict(id=131, section="System Complexity", question_type="likert",
         question_text="How often do you need to use workarounds for system limitations?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="system,workarounds,complexity,efficiency"),
    dict(id=141, section="System Complexity", question_type="text", is_required=False,
         question_text="What are the most critical workarounds you regularly use?",
         validation_rules={"word_limit": 200}, analysis_tags="system,workarounds,critical"),
    dict(id=161, section="Process Bottlenecks", question_type="text",
         question_text="What percentage of leads are lost during the application process?",
         validation_rules={"min": 0, "max": 100}, analysis_tags="process,leads,conversion"),
    dict(id=172, section="Time Allocation", question_type="text",
         question_text="What percentage of your time is spent on administrative tasks?",
         validation_rules={"min": 0, "max": 100}, analysis_tags="time,administrative"),
    dict(id=218, section="System Complexity", question_type="text",
         question_text="How many different tools do you use in your daily work?",
         validation_rules={"min": 1, "max": 50}, analysis_tags="system,tools,complexity"),
    dict(id=248, section="Time Allocation", question_type="text",
         question_text="What percentage of your time is spent on sales activities?",
         validation_rules={"min": 0, "max": 100}, analysis_tags="time,sales,productivity"),
    dict(id=258, section="System Complexity", question_type="text",
         question_text="How many separate logins do you use during a typical day?",
         validation_rules={"min": 0, "max": 30}, analysis_tags="system,logins,complexity"),
    dict(id=270, section="Process Bottlenecks", question_type="likert",
         question_text="How confident are you in the accuracy of lead tracking?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="process,tracking,confidence,satisfaction"),
    dict(id=290, section="System Complexity", question_type="likert",
         question_text="Rate the prevalence of workarounds in your daily work",
         validation_rules={"min": 1, "max": 10}, analysis_tags="system,workarounds,frequency"),
    dict(id=310, section="Process Bottlenecks", question_type="text",
         question_text="How many minutes does it typically take to access needed information?",
         validation_rules={"min": 0, "max": 240}, analysis_tags="process,data,access,efficiency"),
    dict(id=322, section="Team Collaboration", question_type="likert",
         question_text="How would you rate information sharing quality in your team?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="team,information,sharing,satisfaction"),
    dict(id=332, section="Team Collaboration", question_type="likert",
         question_text="How effective are handoffs between team members?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="team,handoffs,effectiveness,productivity"),
    dict(id=342, section="Team Collaboration", question_type="likert",
         question_text="How significant is the communication gap between roles?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="team,communication,gaps"),
    dict(id=354, section="Team Collaboration", question_type="text",
         question_text="How often do you review the pipeline as a team (times per month)?",
         validation_rules={"min": 0, "max": 30}, analysis_tags="team,pipeline,reviews"),
    dict(id=364, section="Process Bottlenecks", question_type="multiple_choice",
         question_text="At which stage do most leads drop out of the process?",
         options=LOSS_STAGES, analysis_tags="process,leads,stages"),
]

SALES_QUESTIONS = [
    dict(section="Daily Workflow", question_type="likert",
         question_text="How easy is it to find an applicant's full history?",
         validation_rules={"min": 1, "max": 10}, analysis_tags="data,access,efficiency"),
    dict(section="Daily Workflow", question_type="ranking",
         question_text="Rank these tasks by how much of your day they take",
         options=["Data entry", "Calls and follow-ups", "Document chasing", "Reporting"],
         analysis_tags="time,administrative"),
    dict(section="Daily Workflow", question_type="percentage",
         question_text="How is your week split between these activities?",
         options=["Data Entry", "Selling", "Other"],
         validation_rules={"sum_to_100": True}, analysis_tags="time,sales,productivity"),
    dict(section="Tools", question_type="checkbox", is_required=False,
         question_text="Which tools do you use to track leads?",
         options=["CRM", "Spreadsheets", "Email", "Paper notes"],
         analysis_tags="system,tools"),
    dict(section="Tools", question_type="text", is_required=False,
         question_text="What one change would save you the most time?",
         validation_rules={"word_limit": 150}, analysis_tags="improvement_areas,satisfaction"),
]


def _question(survey_id: int, order: int, spec: dict) -> Question:
    return Question(
        id=spec.get("id"),
        survey_id=survey_id,
        section=spec["section"],
        question_text=spec["question_text"],
        question_type=spec["question_type"],
        question_order=order,
        is_required=spec.get("is_required", True),
        options=json.dumps(spec["options"]) if spec.get("options") else None,
        validation_rules=json.dumps(spec["validation_rules"]) if spec.get("validation_rules") else None,
        analysis_tags=spec.get("analysis_tags"),
    )


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(Survey).count() > 0:
            print("Database already seeded. Skipping.")
            return

        surveys = [
            Survey(id=1, name="Manager Feedback Survey", target_role="manager",
                   description="Time allocation, systems, collaboration and process bottlenecks"),
            Survey(id=2, name="Admissions Team Feedback Survey", target_role="sales",
                   description="Daily workflow and tooling for the admissions team"),
        ]
        db.add_all(surveys)
        db.flush()

        questions = [_question(1, order, spec) for order, spec in enumerate(MANAGER_QUESTIONS, start=1)]
        db.add_all(questions)
        db.flush()
        sales_questions = [_question(2, order, spec) for order, spec in enumerate(SALES_QUESTIONS, start=1)]
        db.add_all(sales_questions)

        users = [
            User(email="admin@example.com", name="Admin", role="admin", department="Operations"),
            User(email="manager@example.com", name="Manager", role="manager", department="Admissions",
                 hire_date=date(2021, 3, 1)),
            User(email="sales@example.com", name="Advisor", role="sales", department="Admissions",
                 hire_date=date(2023, 8, 15)),
        ]
        db.add_all(users)
        db.commit()

        print("Seed data created successfully!")
        print(f"  Surveys: {len(surveys)}")
        print(f"  Questions: {len(questions) + len(sales_questions)}")
        print(f"  Users: {len(users)}")
        print()
        print("Development analytics logins: admin/admin123, coordinator/coord123, assessor/assess123")

    except Exception as e:
        db.rollback()
        raise e
    finally:
        db.close()


if __name__ == "__main__":
    seed()
