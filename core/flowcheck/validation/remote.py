"""
Remote Authority Bridge - server-side checks the client cannot do alone.

The execution back end knows things a canvas snapshot does not: which
credentials the user owns, the I/O types of every node, and the other
workflows a sub-workflow node calls into. One POST carries the snapshot
and the requested checks; the answer is merged into the local report.

Every way the round-trip can end is a RemoteOutcome:

    SUCCESS          -> the back end's findings
    TIMEOUT          -> one BACKEND_VALIDATION_UNAVAILABLE warning
    TRANSPORT_ERROR  -> one BACKEND_VALIDATION_UNAVAILABLE warning
    REJECTED         -> one BACKEND_VALIDATION_UNAVAILABLE warning

so the aggregator calls ``outcome.findings()`` and never special-cases a
failure. Nothing here raises, and a failed round-trip never turns a
valid local result into an invalid one.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from flowcheck.config import DEFAULT_BACKEND_TIMEOUT
from flowcheck.graph.model import GraphSnapshot
from flowcheck.validation.findings import Finding, FindingCode, Severity

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/api/compile/validate"


class RemoteStatus(StrEnum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    REJECTED = "rejected"  # Non-2xx status or a body we cannot read


@dataclass(frozen=True)
class RemoteChecks:
    """Feature flags sent with the request."""

    check_credentials: bool = True
    check_types: bool = True
    check_subworkflow_cycles: bool = True


class RemoteResponse(BaseModel):
    """Wire shape of the back end's answer."""

    is_valid: bool | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[dict[str, Any]] = Field(default_factory=list)
    info: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


@dataclass(frozen=True)
class RemoteOutcome:
    status: RemoteStatus
    remote_findings: tuple[Finding, ...] = ()
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == RemoteStatus.SUCCESS

    def findings(self) -> list[Finding]:
        if self.ok:
            return list(self.remote_findings)
        return [
            Finding.warning(
                FindingCode.BACKEND_VALIDATION_UNAVAILABLE,
                "Could not perform backend validation. Some issues may not be detected.",
            )
        ]

    @classmethod
    def unavailable(cls, detail: str) -> "RemoteOutcome":
        return cls(status=RemoteStatus.TRANSPORT_ERROR, detail=detail)


def build_request(snapshot: GraphSnapshot, checks: RemoteChecks) -> dict[str, Any]:
    return {
        "nodes": [node.model_dump(mode="json") for node in snapshot.nodes.values()],
        "edges": [edge.model_dump(mode="json") for edge in snapshot.edges],
        "check_credentials": checks.check_credentials,
        "check_types": checks.check_types,
        "check_subworkflow_cycles": checks.check_subworkflow_cycles,
    }


def _parse_finding(raw: dict[str, Any], severity: Severity) -> Finding:
    """The bucket a finding arrives in decides its severity."""
    code = str(raw.get("code", ""))
    message = str(raw.get("message", "")) or "Reported by backend validation"
    node_id = raw.get("node_id", raw.get("nodeId"))
    field_id = raw.get("field", raw.get("field_id"))

    if code not in FindingCode.__members__:
        message = f"[{code or 'UNKNOWN'}] {message}"
        code = FindingCode.REMOTE_FINDING

    return Finding(
        severity=severity,
        code=code,
        message=message,
        node_id=str(node_id) if node_id is not None else None,
        field_id=str(field_id) if field_id is not None else None,
    )


def parse_response(data: Any) -> list[Finding]:
    response = RemoteResponse.model_validate(data)
    findings = [_parse_finding(raw, Severity.ERROR) for raw in response.errors]
    findings.extend(_parse_finding(raw, Severity.WARNING) for raw in response.warnings)
    findings.extend(_parse_finding(raw, Severity.INFO) for raw in response.info)
    return findings


class RemoteAuthority:
    """
    Client for the back end's compile/validate endpoint.

    Args:
        base_url: Back end root, e.g. "https://api.example.com"
        timeout: Hard limit for the whole round-trip, in seconds
        headers: Extra headers (auth) sent with the request
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_BACKEND_TIMEOUT,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            return await client.post(VALIDATE_PATH, json=payload)

    async def validate(
        self, snapshot: GraphSnapshot, checks: RemoteChecks | None = None
    ) -> RemoteOutcome:
        payload = build_request(snapshot, checks or RemoteChecks())
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(self._post(payload), timeout=self.timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            return self._failed(RemoteStatus.TIMEOUT, f"timed out after {self.timeout}s", started, e)
        except httpx.HTTPError as e:
            return self._failed(RemoteStatus.TRANSPORT_ERROR, str(e), started, e)

        if response.is_error:
            return self._failed(RemoteStatus.REJECTED, f"HTTP {response.status_code}", started)

        try:
            findings = parse_response(response.json())
        except (ValueError, ValidationError) as e:
            return self._failed(RemoteStatus.REJECTED, "unreadable response body", started, e)

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            f"Backend validation returned {len(findings)} findings",
            extra={"event": "backend_validation", "latency_ms": latency_ms},
        )
        return RemoteOutcome(status=RemoteStatus.SUCCESS, remote_findings=tuple(findings))

    def _failed(
        self,
        status: RemoteStatus,
        detail: str,
        started: float,
        error: Exception | None = None,
    ) -> RemoteOutcome:
        latency_ms = int((time.monotonic() - started) * 1000)
        logger.warning(
            f"Backend validation unavailable ({status}): {detail}"
            + (f" [{type(error).__name__}]" if error else ""),
            extra={"event": "backend_validation", "latency_ms": latency_ms},
        )
        return RemoteOutcome(status=status, detail=detail)
