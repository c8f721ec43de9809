"""Read-only snapshot feed for renderers.

The host owns one world and advances it on a fixed timestep. After every
``broadcast_interval`` ticks it freezes a snapshot into a JSON frame; HTTP
readers and websocket subscribers only ever see frames, never the world.
Reset rebuilds the world from configuration, optionally under a new seed.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastapi import Body, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response

from ..config import AppConfig, with_seed
from ..sim.factory import World, build_world
from ..sim.types.snapshot import Snapshot

log = logging.getLogger(__name__)


def frame_payload(snapshot: Snapshot) -> Dict[str, Any]:
    return {
        "tick": snapshot.tick,
        "world": asdict(snapshot.world),
        "metadata": asdict(snapshot.metadata),
        "metrics": asdict(snapshot.metrics),
        "agents": snapshot.agents,
        "field": snapshot.field_payload(),
    }


class SnapshotHost:
    def __init__(self, config: AppConfig):
        self._config = config
        self._world: World = build_world(config)
        self._tick = 0
        self._version = 0
        self._snapshot = self._world.snapshot(self._tick)
        self._frame = json.dumps(frame_payload(self._snapshot))
        self._published = asyncio.Condition()
        self._runner: asyncio.Task | None = None

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def frame(self) -> str:
        return self._frame

    @property
    def version(self) -> int:
        return self._version

    async def advance(self, ticks: int = 1) -> int:
        """Step the world ``ticks`` times and publish one frame; returns the frame version."""
        for _ in range(ticks):
            self._world.step(self._tick)
            self._tick += 1
        return await self._publish()

    async def reset(self, seed: Optional[int] = None) -> int:
        if seed is not None:
            self._config = with_seed(self._config, seed)
        self._world = build_world(self._config)
        self._tick = 0
        log.info("%s world rebuilt with seed %d", self._config.model.value, self._config.active.seed)
        return await self._publish()

    async def wait_for_frame(self, seen_version: int) -> Tuple[int, str]:
        """Block until a frame newer than ``seen_version`` is out; returns (version, frame)."""
        async with self._published:
            await self._published.wait_for(lambda: self._version != seen_version)
            return self._version, self._frame

    def status(self) -> Dict[str, Any]:
        return {
            "model": self._config.model.value,
            "seed": self._config.active.seed,
            "tick": self._tick,
            "running": self._runner is not None and not self._runner.done(),
            "population": self._snapshot.metrics.population,
            "metrics": asdict(self._snapshot.metrics),
        }

    def start(self) -> None:
        if self._runner is None or self._runner.done():
            self._runner = asyncio.create_task(self._run())

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner

    async def _run(self) -> None:
        ticks_per_frame = max(1, self._config.broadcast_interval)
        while True:
            await asyncio.sleep(self._config.tick_interval * ticks_per_frame)
            await self.advance(ticks_per_frame)

    async def _publish(self) -> int:
        snapshot = self._world.snapshot(self._tick)
        frame = json.dumps(frame_payload(snapshot))
        async with self._published:
            self._snapshot = snapshot
            self._frame = frame
            self._version += 1
            self._published.notify_all()
        return self._version


def _load_app_config() -> AppConfig:
    path = os.environ.get("PETRI_CONFIG")
    if path:
        return AppConfig.from_yaml(Path(path))
    return AppConfig()


host = SnapshotHost(_load_app_config())


app = FastAPI(title="Petri snapshot feed")


@app.on_event("startup")
async def _startup() -> None:
    host.start()
    log.info("serving %s snapshots", host.config.model.value)


@app.on_event("shutdown")
async def _shutdown() -> None:
    await host.stop()


@app.get("/")
async def index() -> JSONResponse:
    return JSONResponse({**host.status(), "snapshot": "/api/snapshot", "websocket": "/ws"})


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(host.status())


@app.get("/api/snapshot")
async def latest_snapshot() -> Response:
    return Response(content=host.frame, media_type="application/json")


@app.post("/api/reset")
async def reset(payload: Optional[dict] = Body(default=None)) -> JSONResponse:
    seed = (payload or {}).get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        return JSONResponse({"error": f"seed must be an integer, got {seed!r}"}, status_code=400)
    await host.reset(seed)
    return JSONResponse(host.status())


@app.websocket("/ws")
async def frames(websocket: WebSocket) -> None:
    await websocket.accept()
    version = host.version
    try:
        await websocket.send_text(host.frame)
        while True:
            version, frame = await host.wait_for_frame(version)
            await websocket.send_text(frame)
    except WebSocketDisconnect:
        log.debug("snapshot subscriber left")


__all__ = ["app", "frame_payload", "host", "SnapshotHost"]
