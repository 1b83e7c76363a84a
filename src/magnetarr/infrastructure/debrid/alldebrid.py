"""AllDebrid v4 client - async httpx implementation.

Every response is decoded here into ``Success`` / ``Failure``; nothing
past this module looks at AllDebrid's JSON shapes.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from magnetarr.domain.entities.media import Magnet, MagnetReadiness, VideoFile
from magnetarr.domain.entities.upstream import (
    Failure,
    FailureKind,
    Success,
    UpstreamResult,
)

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.alldebrid.com/v4"


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def flatten_entries(entries: Any) -> list[dict[str, Any]]:
    """Flatten AllDebrid's nested listing (folders keep children in ``e``)."""
    flat: list[dict[str, Any]] = []
    if not isinstance(entries, list):
        return flat
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        children = entry.get("e")
        if isinstance(children, list):
            flat.extend(flatten_entries(children))
        else:
            flat.append(entry)
    return flat


class AllDebridClient:
    """Implements ``DebridClientPort`` for a single AllDebrid account."""

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        agent: str = "magnetarr",
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._agent = agent
        self._base_url = base_url.rstrip("/")

    async def _post(self, path: str, data: dict[str, Any]) -> UpstreamResult[Any]:
        """POST form *data*; returns the ``data`` payload of a success envelope."""
        url = f"{self._base_url}/{path}"
        try:
            resp = await self._http.post(
                url,
                params={"agent": self._agent},
                data=data,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as exc:
            log.warning(
                "alldebrid_http_error",
                path=path,
                status=exc.response.status_code,
            )
            return Failure(FailureKind.UNREACHABLE, f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            log.warning("alldebrid_network_error", path=path, error=str(exc))
            return Failure(FailureKind.UNREACHABLE, str(exc))
        except ValueError:
            log.warning("alldebrid_invalid_json", path=path)
            return Failure(FailureKind.MALFORMED, "invalid JSON")

        if not isinstance(body, dict):
            return Failure(FailureKind.MALFORMED, "unexpected body")
        if body.get("status") != "success":
            error = body.get("error") or {}
            detail = error.get("code", "") if isinstance(error, dict) else str(error)
            log.warning("alldebrid_rejected", path=path, error=detail)
            return Failure(FailureKind.REJECTED, str(detail))
        return Success(body.get("data"))

    async def upload_magnets(self, hashes: list[str]) -> UpstreamResult[list[Magnet]]:
        if not hashes:
            return Success([])

        result = await self._post("magnet/upload", {"magnets[]": list(hashes)})
        if not isinstance(result, Success):
            return result

        raw = result.value.get("magnets") if isinstance(result.value, dict) else None
        if not isinstance(raw, list):
            return Failure(FailureKind.MALFORMED, "missing magnets list")

        magnets: list[Magnet] = []
        for entry in raw:
            if not isinstance(entry, dict) or "error" in entry or "id" not in entry:
                log.debug("alldebrid_magnet_skipped", entry=entry)
                continue
            magnets.append(
                Magnet(
                    hash=str(entry.get("hash") or entry.get("magnet", "")).lower(),
                    remote_id=str(entry["id"]),
                    display_name=str(entry.get("name", "")),
                    size_bytes=_to_int(entry.get("size")),
                    readiness=(
                        MagnetReadiness.READY
                        if entry.get("ready")
                        else MagnetReadiness.NOT_READY
                    ),
                )
            )

        log.info(
            "magnet_upload_done",
            submitted=len(hashes),
            accepted=len(magnets),
            ready=sum(1 for m in magnets if m.is_ready),
        )
        return Success(magnets)

    async def get_files(self, remote_id: str) -> UpstreamResult[list[VideoFile]]:
        result = await self._post("magnet/files", {"id[]": [remote_id]})
        if not isinstance(result, Success):
            return result

        data = result.value if isinstance(result.value, dict) else {}
        listed = data.get("magnets")
        if not isinstance(listed, list) or not listed or not isinstance(listed[0], dict):
            return Failure(FailureKind.MALFORMED, "missing magnets list")
        if "error" in listed[0]:
            return Failure(FailureKind.NOT_FOUND, str(listed[0]["error"]))

        files = [
            VideoFile(
                name=str(e["n"]),
                size_bytes=_to_int(e.get("s")),
                locked_link=str(e["l"]),
            )
            for e in flatten_entries(listed[0].get("files"))
            if e.get("n") and e.get("l")
        ]
        log.debug("magnet_files_listed", remote_id=remote_id, count=len(files))
        return Success(files)

    async def unlock(self, locked_link: str) -> UpstreamResult[str]:
        result = await self._post("link/unlock", {"link": locked_link})
        if not isinstance(result, Success):
            return result

        link = result.value.get("link") if isinstance(result.value, dict) else None
        if not link:
            return Failure(FailureKind.MALFORMED, "missing link")
        return Success(str(link))

    async def delete_magnets(self, remote_ids: list[str]) -> UpstreamResult[None]:
        if not remote_ids:
            return Success(None)

        result = await self._post("magnet/delete", {"ids[]": list(remote_ids)})
        if not isinstance(result, Success):
            return result
        log.info("magnets_deleted_remote", count=len(remote_ids))
        return Success(None)
