"""
Agora — A REST Backend for Community Discussion Forums
=======================================================
Members sign up, log in with a bearer token, and post topics, questions,
events and replies.  Content can be liked, saved and listed with a small
set of sort modes and a title search.

Package layout::

    agora/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # AgoraError taxonomy → HTTP status codes
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, guarded sessions, async helper
    │   └── models.py      # Users, content, likes, saves, rate-limit log
    ├── services/
    │   ├── kinds.py               # Per-kind registry (model, fields, sort keys)
    │   ├── content_service.py     # CRUD for topics/questions/events/replies
    │   ├── interaction_service.py # Like/unlike/save/unsave + counters
    │   ├── listing.py             # Sort modes + filtered listing
    │   └── user_service.py        # Accounts, bcrypt, profile CRUD
    └── api/
        ├── main.py        # FastAPI app, error rendering
        ├── deps.py        # JWT + authentication gate
        ├── auth.py        # Signup/login + user endpoints
        ├── rate_limit.py  # Optional per-user mutation limiter
        ├── serializers.py # ORM rows → PascalCase JSON
        └── routes/        # discussions, questions, events, replies
"""

__version__ = "0.1.0"
