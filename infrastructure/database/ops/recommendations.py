"""Database operations for stored AI recommendations (write-once)."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now
from infrastructure.utils.structured_fields import dump_json_field, parse_json_dict, parse_json_list

logger = logging.getLogger(__name__)


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    data["disease_detected"] = bool(data.get("disease_detected"))
    data["symptoms"] = parse_json_list(data.get("symptoms"))
    data["treatments"] = parse_json_list(data.get("treatments"))
    data["prevention"] = parse_json_list(data.get("prevention"))
    data["payload"] = parse_json_dict(data.get("payload"))
    return data


class RecommendationOperations:
    def insert_recommendation(
        self,
        user_id: int,
        kind: str,
        *,
        plant_id: int | None = None,
        disease_detected: bool = False,
        disease_name: str | None = None,
        severity: str | None = None,
        confidence: float | None = None,
        symptoms: list[str] | None = None,
        treatments: list[str] | None = None,
        prevention: list[str] | None = None,
        payload: dict[str, Any] | None = None,
        raw_text: str | None = None,
        provider: str | None = None,
    ) -> int | None:
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO AIRecommendations (
                        user_id, plant_id, kind, disease_detected, disease_name, severity, confidence,
                        symptoms, treatments, prevention, payload, raw_text, provider, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        plant_id,
                        kind,
                        1 if disease_detected else 0,
                        disease_name,
                        severity,
                        confidence,
                        dump_json_field(symptoms or []),
                        dump_json_field(treatments or []),
                        dump_json_field(prevention or []),
                        dump_json_field(payload or {}),
                        raw_text,
                        provider,
                        iso_now(),
                    ),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to store AI recommendation: %s", exc)
            return None

    def list_recommendations(
        self,
        user_id: int,
        *,
        plant_id: int | None = None,
        kind: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        sql = "SELECT * FROM AIRecommendations WHERE user_id = ?"
        params: list[Any] = [user_id]
        if plant_id is not None:
            sql += " AND plant_id = ?"
            params.append(plant_id)
        if kind:
            sql += " AND kind = ?"
            params.append(kind)
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)
        try:
            return [_decode(row) for row in self.get_db().execute(sql, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("Failed to list AI recommendations for user %s: %s", user_id, exc)
            return []
