from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import NotFoundError
from levelup.core.permissions import Role
from levelup.models.notification import Notification
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.roster import RosterRepository

SUBMISSION_RECIPIENT_ROLES = (Role.HR, Role.CEO)


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: str = None,
        details: Optional[dict] = None,
    ) -> Notification:
        """
        Internal utility for creating notifications. Flushed, not committed:
        the caller's transaction decides whether it is kept.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link,
            details=details,
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def submission_stats(db: Session, department: str, year: int) -> Dict[str, int]:
        """Review targets of the department with their authoritative recommendation counts."""
        roster = RosterRepository(db)
        targets = roster.review_targets(year, departments=[department])
        reviews = roster.reviews_for([c.id for c in targets])
        recommendations = [r.recommendation for r in reviews.values()]
        return {
            "total": len(targets),
            "recommended": sum(1 for r in recommendations if r is True),
            "not_recommended": sum(1 for r in recommendations if r is False),
        }

    @staticmethod
    def notify_submission(
        db: Session,
        department: str,
        year: int,
        submitted_by: Optional[int],
        stats: Dict[str, int],
    ) -> List[Notification]:
        """
        Tell HR and the final approvers that ``department`` submitted its
        reviews for ``year``.
        """
        message = (
            f"{department} submitted its {year} level-up reviews: "
            f"{stats['total']} candidates ({stats['recommended']} recommended, "
            f"{stats['not_recommended']} not recommended)."
        )
        details = {"department": department, "year": year, "submitted_by": submitted_by, "stats": stats}
        return [
            NotificationService.create_notification(
                db,
                recipient.id,
                f"[Level-up] {department} review submitted",
                message,
                type="success",
                link=f"/confirmation?year={year}&department={department}",
                details=details,
            )
            for recipient in EmployeeRepository(db).with_roles(SUBMISSION_RECIPIENT_ROLES)
        ]

    @staticmethod
    def for_user(db: Session, user_id: int, unread_only: bool = False) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    @staticmethod
    def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        ).first()
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        notification.is_read = True
        try:
            db.commit()
            db.refresh(notification)
        except Exception:
            db.rollback()
            raise
        return notification
