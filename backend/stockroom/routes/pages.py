# Overview: Server-rendered pages (password reset form).

from flask import Blueprint, current_app, render_template, url_for

pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/reset-password/<token>")
def reset_password_page(token: str):
    """Form that posts the new password to the reset API for this token."""
    return render_template(
        "reset_password.html",
        company_name=current_app.config["COMPANY_NAME"],
        reset_endpoint=url_for("auth.reset_password_route", token=token),
    )
