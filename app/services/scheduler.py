# app/services/scheduler.py
"""
Scheduler service for the daily birthday reminder email
"""

from datetime import date
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import extract, or_
import logging

from app.config.settings import settings
from app.database import SessionLocal
from app.models.user import User, Department, MANAGER_ROLES
from app.services.email_service import email_service

logger = logging.getLogger(__name__)

BIRTHDAY_JOB_ID = "daily_birthday_reminder"


class BirthdayScheduler:
    """Runs the birthday reminder once a day"""

    def __init__(self, session_factory=SessionLocal, mailer=email_service, config=settings):
        self.session_factory = session_factory
        self.mailer = mailer
        self.config = config
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return
        self.scheduler = AsyncIOScheduler()
        # A run still in progress blocks the next one
        self.scheduler.add_job(
            self.send_birthday_reminders,
            trigger=CronTrigger(hour=self.config.BIRTHDAY_REMINDER_HOUR, minute=self.config.BIRTHDAY_REMINDER_MINUTE),
            id=BIRTHDAY_JOB_ID,
            name="Daily Birthday Reminder",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        self.is_running = True
        logger.info("Birthday scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Birthday scheduler stopped")

    async def send_birthday_reminders(self, today: Optional[date] = None) -> int:
        """Email the reminder department's VP and Head about today's birthdays.

        Returns the number of users the reminder covered. Users are marked as
        reminded for the year only after the email went out.
        """
        today = today or date.today()
        department = Department(self.config.BIRTHDAY_REMINDER_DEPARTMENT)
        db = self.session_factory()
        try:
            users = db.query(User).filter(
                User.birthday.isnot(None),
                extract("month", User.birthday) == today.month,
                extract("day", User.birthday) == today.day,
                or_(
                    User.last_birthday_reminder_year.is_(None),
                    User.last_birthday_reminder_year != today.year,
                ),
            ).order_by(User.name).all()

            if not users:
                logger.info("No birthdays today")
                return 0

            managers = db.query(User).filter(
                User.role.in_(MANAGER_ROLES),
                User.department == department,
            ).all()
            recipients = [manager.email for manager in managers]
            if not recipients:
                logger.warning(f"No VP or Head in {department.value}, birthday reminder not sent")
                return 0

            sent = await self.mailer.send_birthday_reminder(recipients, users, department.value)
            if not sent:
                logger.warning(f"Birthday reminder for {len(users)} user(s) was not delivered")
                return 0

            for user in users:
                user.last_birthday_reminder_year = today.year
            db.commit()
            logger.info(f"Birthday reminders sent for {len(users)} user(s)")
            return len(users)
        except Exception:
            db.rollback()
            logger.exception("Error in birthday scheduler")
            raise
        finally:
            db.close()

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running",
            "jobs": jobs
        }


# Global scheduler instance
birthday_scheduler = BirthdayScheduler()
