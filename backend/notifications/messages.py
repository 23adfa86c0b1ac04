# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Builders for the transactional e-mails sent by the auth flows."""

from html import escape

from core.config import settings
from notifications.mailer import MailMessage


def _html(title: str, username: str, body: str, link: str, label: str) -> str:
    return (
        "<!DOCTYPE html><html><body style=\"font-family:Arial,sans-serif;\">"
        f"<h3>{escape(title)}</h3>"
        f"<p>Hello {escape(username)},<br>{body}</p>"
        f"<p><a href=\"{escape(link, quote=True)}\">{escape(label)}</a></p>"
        f"<p style=\"color:#777;font-size:12px;\">&copy; {escape(settings.project_title)}</p>"
        "</body></html>"
    )


def otp_message(email: str, username: str, code: str, otp_id: str, purpose: str) -> MailMessage:
    minutes = max(1, settings.otp_ttl_seconds // 60)
    if purpose == "login":
        title = f"Your Login OTP - {settings.project_title}"
        subject = title
        intro = "for login"
    else:
        title = f"Your Verification OTP - {settings.project_title}"
        subject = "OTP For Email Verification"
        intro = "for verification"
    body = (
        f"Your One-Time Password (OTP) {intro} is <b>{code}</b>. "
        f"It will expire in <b>{minutes} minute(s)</b>. Please do not share this code with anyone."
    )
    return MailMessage(
        to=email,
        subject=subject,
        html=_html(title, username, body, f"{settings.frontend_url}/auth/verify/{otp_id}", "Verify OTP"),
        text=f"Your OTP is {code}. It will expire in {minutes} minute(s). "
             "Please do not share it with anyone.",
    )


def welcome_message(email: str, username: str, returning: bool, via_google: bool = False) -> MailMessage:
    title = f"Welcome to {settings.project_title}!"
    if via_google:
        lead = "You have successfully signed in using your Google account."
    elif returning:
        lead = "Your account has been verified successfully and you are now signed in."
    else:
        lead = "Your account has been created and verified successfully."
    greeting = "Welcome back!" if returning else "We're delighted to have you onboard."
    return MailMessage(
        to=email,
        subject=f"Welcome {username} - {settings.project_title}",
        html=_html(title, username, f"{greeting}<br><br>{lead}", f"{settings.frontend_url}/", "Go to Dashboard"),
        text=f"{greeting} {lead} You can now access your dashboard at {settings.frontend_url}/.",
    )


def password_reset_message(email: str, username: str, link: str) -> MailMessage:
    title = f"Password Reset Request - {settings.project_title}"
    body = (
        f"We received a request to reset the password for your account <b>{escape(email)}</b>.<br><br>"
        "Please click the button below to create a new password."
    )
    return MailMessage(
        to=email,
        subject=title,
        html=_html(title, username, body, link, "Reset Password"),
        text=f"We received a request to reset your password. Use this link to proceed: {link}. "
             "If this wasn't you, ignore this email.",
    )


def suspicious_reset_message(email: str, username: str, link: str, device: str = "", location: str = "") -> MailMessage:
    title = f"Suspicious Password Reset Attempt - {settings.project_title}"
    if device or location:
        info = (
            "A suspicious forgot password attempt was detected from device: "
            f"{device or 'unknown'}, located in {location or 'an unknown location'}."
        )
    else:
        info = "A suspicious forgot password attempt was detected."
    return MailMessage(
        to=email,
        subject=title,
        html=_html(title, username, f"{escape(info)}<br><br>If this was you, please confirm below.",
                   link, "Confirm Password Reset"),
        text=f"{info} If this was you, confirm here: {link}. If not, ignore this email.",
    )


def password_changed_message(email: str, username: str) -> MailMessage:
    title = f"Your Password Has Been Updated - {settings.project_title}"
    body = (
        f"This is a confirmation that the password for your account <b>{escape(email)}</b> "
        "has been successfully updated.<br><br>If you did not make this change, please "
        "reset your password again or contact support immediately."
    )
    return MailMessage(
        to=email,
        subject=f"Password Changed Successfully - {settings.project_title}",
        html=_html(title, username, body, f"{settings.frontend_url}/auth/signin", "Sign in to Your Account"),
        text="Your password has been updated successfully. "
             "If this wasn't you, please reset your password immediately or contact support.",
    )
