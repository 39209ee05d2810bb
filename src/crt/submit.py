"""Aggregate submission of completed sessions to the remote statistics endpoint.

Only session-level numbers leave the device: participant id, trial total,
CRT and Stroop accuracy / mean RT, and a little display metadata. Submission
is fire-and-forget; every failure is logged and swallowed so the local
completion flow never depends on the network.
"""
from __future__ import annotations

import platform
import threading
from typing import Any, Dict, Optional, Sequence

import httpx
from psychopy import logging

from crt import __version__, config
from crt.recorder import SectionResult, TestSession

SUBMIT_PATH = "/api/submit"
STATS_PATH = "/api/stats"


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def crt_averages(sections: Sequence[SectionResult]) -> tuple[float, float]:
    """(mean of section accuracies, mean of section mean RTs)."""
    return (
        _mean([s.summary.accuracy for s in sections]),
        _mean([s.summary.mean_rt_ms for s in sections]),
    )


def default_meta(screen_size: Optional[Sequence[int]] = None) -> Dict[str, Any]:
    width, height = (int(screen_size[0]), int(screen_size[1])) if screen_size else (None, None)
    return {
        "userAgent": f"crt-stroop-task/{__version__} ({platform.platform()})",
        "screenW": width,
        "screenH": height,
    }


def build_payload(
    session: TestSession,
    participant_id: str,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Transform a completed TestSession into the submission payload.

    Args:
        session: The completed session
        participant_id: Per-device identifier (see crt.storage.participant_id)
        meta: userAgent / screenW / screenH; defaults to default_meta()

    Returns:
        JSON-serializable payload dictionary
    """
    crt_acc, crt_rt = crt_averages(session.crt_sections)
    stroop = session.stroop_section.summary if session.stroop_section else None
    return {
        "participantId": participant_id,
        "totalTrials": config.TOTAL_NOMINAL_TRIALS,
        "crt": {"accuracy": crt_acc, "meanRtMs": crt_rt},
        "stroop": {
            "accuracy": stroop.accuracy if stroop else None,
            "meanRtMs": stroop.mean_rt_ms if stroop else None,
        },
        "meta": meta if meta is not None else default_meta(),
    }


class AggregateClient:
    """Client for the remote aggregation endpoint.

    Attributes:
        base_url: Base URL of the service (e.g., "https://stats.example.com")
        timeout: HTTP request timeout in seconds
    """

    def __init__(self, base_url: str = config.SUBMIT_URL, timeout: float = config.SUBMIT_TIMEOUT_S):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def submit(self, payload: Dict[str, Any]) -> bool:
        """Post one session summary.

        Returns:
            True if the endpoint stored the row, False otherwise
        """
        if not payload.get("participantId") or not payload.get("totalTrials"):
            logging.warning("Submission skipped: payload lacks participantId or totalTrials")
            return False

        url = f"{self.base_url}{SUBMIT_PATH}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload)
                if response.is_success:
                    logging.exp(f"Session submitted to {url}")
                    return True
                logging.warning(
                    f"Submission rejected: HTTP {response.status_code} - {response.text}"
                )
                return False
        except httpx.ConnectError as e:
            logging.warning(f"Connection error when submitting session: {e}")
            return False
        except httpx.TimeoutException as e:
            logging.warning(f"Timeout when submitting session: {e}")
            return False
        except Exception as e:
            logging.warning(f"Unexpected error when submitting session: {e}")
            return False

    def submit_in_background(self, payload: Dict[str, Any]) -> threading.Thread:
        thread = threading.Thread(target=self.submit, args=(payload,), daemon=True)
        thread.start()
        return thread

    def fetch_stats(self) -> Optional[Dict[str, Any]]:
        """Read the aggregate (row count and per-metric averages).

        Returns:
            The aggregate dictionary, or None if it could not be fetched
        """
        url = f"{self.base_url}{STATS_PATH}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logging.warning(f"HTTP error when fetching stats: {e}")
            return None
        except httpx.HTTPError as e:
            logging.warning(f"Request failed when fetching stats: {e}")
            return None
        except ValueError as e:
            logging.warning(f"Stats response was not JSON: {e}")
            return None
        if not isinstance(data, dict) or not data.get("ok", True):
            return None
        return {k: v for k, v in data.items() if k != "ok"}
