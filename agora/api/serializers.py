"""
agora.api.serializers — ORM rows → JSON-ready dicts
====================================================

Wire format uses PascalCase keys (``TopicID``, ``LikesCount`` …) with the
creator, likes and saves inlined.  Password hashes are never emitted.
"""

from __future__ import annotations

from datetime import date, datetime

from agora.database.models import Event, Like, Question, Reply, Saved, Topic, User


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def user_dict(u: User) -> dict:
    return {
        "UserID": u.id,
        "FirstName": u.first_name,
        "LastName": u.last_name,
        "Email": u.email,
    }


def _like_dict(like: Like) -> dict:
    return {"LikeID": like.id, "UserID": like.user_id, "User": user_dict(like.user)}


def _saved_dict(saved: Saved) -> dict:
    return {"SavedID": saved.id, "UserID": saved.user_id, "User": user_dict(saved.user)}


def topic_dict(t: Topic) -> dict:
    return {
        "TopicID": t.id,
        "Title": t.title,
        "Content": t.content,
        "CreatedAt": _iso(t.created_at),
        "CreatorID": t.creator_id,
        "LikesCount": t.likes_count,
        "CreatedBy": user_dict(t.creator),
        "Likes": [_like_dict(like) for like in t.likes],
        "Saved": [_saved_dict(s) for s in t.saved],
        "RepliesCount": len(t.replies),
    }


def question_dict(q: Question) -> dict:
    return {
        "QuestionID": q.id,
        "Title": q.title,
        "Content": q.content,
        "CreatedAt": _iso(q.created_at),
        "CreatorID": q.creator_id,
        "LikesCount": q.likes_count,
        "CreatedBy": user_dict(q.creator),
        "Likes": [_like_dict(like) for like in q.likes],
        "Saved": [_saved_dict(s) for s in q.saved],
        "RepliesCount": len(q.replies),
    }


def event_dict(e: Event) -> dict:
    return {
        "EventID": e.id,
        "Title": e.title,
        "Description": e.description,
        "Date": _iso(e.event_date),
        "Location": e.location,
        "CreatedAt": _iso(e.created_at),
        "CreatorID": e.creator_id,
        "LikesCount": e.likes_count,
        "CreatedBy": user_dict(e.creator),
        "Likes": [_like_dict(like) for like in e.likes],
        "Saved": [_saved_dict(s) for s in e.saved],
    }


def reply_dict(r: Reply) -> dict:
    return {
        "ReplyID": r.id,
        "Content": r.content,
        "CreatedAt": _iso(r.created_at),
        "CreatorID": r.creator_id,
        "TopicID": r.topic_id,
        "QuestionID": r.question_id,
        "LikesCount": r.likes_count,
        "CreatedBy": user_dict(r.creator),
        "Likes": [_like_dict(like) for like in r.likes],
    }

