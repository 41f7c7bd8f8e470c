"""Load the default grade rules and level thresholds into an empty database."""
from levelup.database import SessionLocal, init_db
from levelup.models.grade_rule import GradeRule
from levelup.models.level_threshold import LevelThreshold

DEFAULT_GRADE_RULES = [
    ("S", "2021-2024", 4),
    ("A", "2021-2024", 3),
    ("B", "2021-2024", 2),
    ("C", "2021-2024", 1),
    ("S", "2025", 4),
    ("O", "2025", 3),
    ("E", "2025", 2.5),
    ("G", "2025", 2),
    ("N", "2025", 1.5),
    ("U", "2025", 1),
]

# level, required points, required credits, minimum tenure
DEFAULT_THRESHOLDS = [
    ("L0", 4, 0, 2),
    ("L1", 4, 8, 2),
    ("L2", 4, 20, 3),
    ("L3", 11, 15, 4),
    ("L4", 15, 25, 5),
    ("L5", 20, 30, 6),
]

THRESHOLD_YEAR = 2026


def seed():
    init_db()
    db = SessionLocal()
    try:
        if db.query(GradeRule).first() is None:
            db.add_all([GradeRule(grade=g, year_range=r, points=p) for g, r, p in DEFAULT_GRADE_RULES])
            db.commit()
            print(f"Created {len(DEFAULT_GRADE_RULES)} grade rules")
        else:
            print("Grade rules already configured, leaving them alone")

        if db.query(LevelThreshold).filter(LevelThreshold.year == THRESHOLD_YEAR).first() is None:
            db.add_all([
                LevelThreshold(level=level, year=THRESHOLD_YEAR, required_points=points,
                               required_credits=credits, min_tenure_years=tenure)
                for level, points, credits, tenure in DEFAULT_THRESHOLDS
            ])
            db.commit()
            print(f"Created level thresholds for {THRESHOLD_YEAR}")
        else:
            print(f"Level thresholds for {THRESHOLD_YEAR} already exist")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
