# dietplanner/routes/pages.py
# SPA shell for browser routes. Who may see which page is decided by the
# session guard before these handlers run.

from flask import Blueprint, render_template

pages_bp = Blueprint("pages", __name__)


@pages_bp.route("/")
@pages_bp.route("/auth/<path:subpath>")
@pages_bp.route("/app")
@pages_bp.route("/app/<path:subpath>")
def spa_shell(subpath=None):
    return render_template("index.html")
