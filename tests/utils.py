"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from starlette.requests import Request

from intranet.models import MandatoryContent, MandatoryContentSignature, Profile, Setting

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)

QUIZ = {
    "questions": [
        {
            "question": "Qual o prazo para troca?",
            "options": ["7 dias", "30 dias", "90 dias"],
            "correct_answer": "30 dias",
            "explanation": "A política de troca é de 30 dias.",
        },
        {
            "question": "Quem aprova descontos?",
            "options": ["Gerente", "Caixa", "Cliente"],
            "correct_answer": "Gerente",
            "explanation": "",
        },
        {
            "question": "Qual o canal oficial?",
            "options": ["Intranet", "E-mail pessoal"],
            "correct_answer": "Intranet",
            "explanation": "",
        },
    ]
}

CORRECT_ANSWERS = {0: "30 dias", 1: "Gerente", 2: "Intranet"}


def create_profile(db, **kwargs) -> Profile:
    defaults = {
        "full_name": "Maria Souza",
        "email": "maria@example.com",
        "role": "colaborador",
        "unit_code": "U001",
        "is_active": True,
    }
    defaults.update(kwargs)
    profile = Profile(**defaults)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def create_content(db, minutes: int = 0, **kwargs) -> MandatoryContent:
    """Contents are ordered by created_at; minutes offsets it from BASE_TIME"""
    defaults = {
        "title": "Política de trocas",
        "type": "text",
        "content_text": "Texto da política de trocas.",
        "quiz_questions": None,
        "target_audience": "ambos",
        "active": True,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
        "updated_at": BASE_TIME + timedelta(minutes=minutes),
    }
    defaults.update(kwargs)
    content = MandatoryContent(**defaults)
    db.add(content)
    db.commit()
    db.refresh(content)
    return content


def create_video(db, minutes: int = 0, **kwargs) -> MandatoryContent:
    defaults = {
        "title": "Boas-vindas",
        "type": "video",
        "content_url": "https://cdn.example.com/boas-vindas.mp4",
        "content_text": None,
    }
    defaults.update(kwargs)
    return create_content(db, minutes=minutes, **defaults)


def create_signature(db, content: MandatoryContent, user: Profile, success: bool = True) -> MandatoryContentSignature:
    signature = MandatoryContentSignature(
        content_id=content.id,
        user_id=user.id,
        score=100,
        confirmation_text="ok",
        ip_address="127.0.0.1",
        success=success,
    )
    db.add(signature)
    db.commit()
    return signature


def set_setting(db, key: str, value: str) -> Setting:
    row = Setting(key=key, value=value)
    db.add(row)
    db.commit()
    return row


def make_request(forwarded_for: Optional[str] = None, client_host: Optional[str] = "10.0.0.5") -> Request:
    headers = []
    if forwarded_for:
        headers.append((b"x-forwarded-for", forwarded_for.encode()))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": headers,
        "client": (client_host, 50000) if client_host else None,
    }
    return Request(scope)
