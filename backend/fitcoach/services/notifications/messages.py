"""Message bodies for scheduled report deliveries."""
from __future__ import annotations

from html import escape
from typing import Tuple

FAILURE_SUBJECT = "Scheduled Report Failed"


def build_scheduled_report_email(report_name: str) -> Tuple[str, str]:
    """Return ``(subject, html_body)`` for a finished scheduled report."""
    subject = f"Scheduled Fitness Report: {report_name}"
    body = (
        "<!DOCTYPE html><html><head><style>"
        "body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }"
        ".container { max-width: 600px; margin: 0 auto; padding: 20px; }"
        ".header { background-color: #27ae60; color: white; padding: 20px; text-align: center; }"
        ".content { background-color: #f9f9f9; padding: 20px; margin-top: 20px; }"
        "</style></head><body><div class='container'>"
        "<div class='header'><h1>📊 Scheduled Fitness Report</h1></div>"
        "<div class='content'>"
        "<h2>Your Report is Ready!</h2>"
        f"<p>Report Name: <strong>{escape(report_name)}</strong></p>"
        "<p>This is your automated fitness report as per your schedule.</p>"
        "<p>The detailed report is attached as a PDF.</p>"
        "<p style='margin-top: 20px;'><em>Stay consistent and keep tracking your progress!</em></p>"
        "</div></div></body></html>"
    )
    return subject, body


def build_scheduled_report_message(report_name: str) -> str:
    return (
        "📊 *Scheduled Fitness Report*\n\n"
        f"Report: *{report_name}*\n\n"
        "Your automated fitness report is ready as per your schedule.\n\n"
        "Sending PDF now... 📄"
    )


def build_scheduled_report_caption(report_name: str) -> str:
    return f"📅 Scheduled Report: {report_name}"


def build_failure_email(schedule_id: str, error: str) -> Tuple[str, str]:
    body = f"Your scheduled fitness report ({schedule_id}) failed to generate. Error: {error}"
    return FAILURE_SUBJECT, body


WHATSAPP_TEST_MESSAGE = "🏋️ Hello from FitCoach! This is a test message from your fitness report scheduler."


def build_fitness_plan_message(report_name: str) -> str:
    return (
        "🏋️ *Your Fitness Plan is Ready!*\n\n"
        f"Report: *{report_name}*\n\n"
        "Your personalized fitness plan has been generated and includes:\n"
        "✅ Workout schedule\n"
        "✅ Meal plan\n"
        "✅ Supplement recommendations\n\n"
        "Sending your PDF now... 📄"
    )


def build_fitness_plan_caption(report_name: str) -> str:
    return f"📊 {report_name} - Fitness Plan Report"
