from flask import g, request

SESSION_HEADER = "X-Session-ID"


def edit_session_middleware(app):
    @app.before_request
    def load_edit_session():
        # Groups version entries written by one editor session.
        session_id = (request.headers.get(SESSION_HEADER) or "").strip()
        g.session_id = session_id[:64] or None
