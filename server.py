from fastapi import FastAPI, HTTPException, Request

import dm_state as st
from dm_events import MalformedMessage, ingest, parse_message
from dm_export import export_session
from dm_sessions import SessionRegistry, now_ms
from dm_transport import ActConnection

# ------------------------------------------------------------------------------
# App & shared state
# ------------------------------------------------------------------------------

app = FastAPI()
app.state.registry = SessionRegistry()
app.state.act = ActConnection(app.state.registry, st.ACT_HOST, st.ACT_PORT)


def _registry(req: Request) -> SessionRegistry:
    return req.app.state.registry


async def _body(req: Request):
    try:
        return await req.json()
    except ValueError:
        raise HTTPException(status_code=422, detail="body is not valid JSON")


def _parse(raw):
    try:
        return parse_message(raw, received_at=now_ms())
    except MalformedMessage as e:
        raise HTTPException(status_code=422, detail=str(e))


def _record_or_404(req: Request, record_id: str):
    session = _registry(req).find(record_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"unknown record {record_id}")
    return session

# ------------------------------------------------------------------------------
# Ingestion
# ------------------------------------------------------------------------------

@app.post("/event")
async def handle_event(req: Request, record_id: str | None = None):
    """
    Handle one combat-log message.
    Without record_id it is a live message for the active record; with it the
    message is replayed into that record.
    """
    ev = _parse(await _body(req))
    session = ingest(_registry(req), ev, session_id=record_id)
    return {"record_id": session.id, "last_timestamp": session.last_timestamp}


@app.post("/records/{record_id}/events")
async def replay_events(record_id: str, req: Request):
    """Replay a list of recorded messages into one record."""
    messages = await _body(req)
    if not isinstance(messages, list):
        raise HTTPException(status_code=422, detail="expected a list of messages")
    events = [_parse(raw) for raw in messages]
    session = None
    for ev in events:
        session = ingest(_registry(req), ev, session_id=record_id)
    print(f"[Event] Replayed {len(events)} messages into {record_id}")
    if session is None:
        return {"record_id": record_id, "ingested": 0}
    return {"record_id": session.id, "ingested": len(events)}

# ------------------------------------------------------------------------------
# Query surface
# ------------------------------------------------------------------------------

@app.get("/records")
async def list_records(req: Request):
    return _registry(req).snapshot()


@app.get("/records/active")
async def active_record(req: Request):
    session = _registry(req).active_session()
    if session is None:
        raise HTTPException(status_code=404, detail="no active record")
    return session.to_dict()


@app.get("/records/{record_id}")
async def get_record(record_id: str, req: Request):
    return _record_or_404(req, record_id).to_dict()


@app.post("/records/{record_id}/export")
async def export_record(record_id: str, req: Request):
    session = _record_or_404(req, record_id)
    url, key = export_session(session)
    if not url:
        raise HTTPException(status_code=503, detail="export unavailable")
    return {"record_id": session.id, "url": url, "key": key}

# ------------------------------------------------------------------------------
# Connection control & lifecycle
# ------------------------------------------------------------------------------

@app.get("/connection")
async def connection_state(req: Request):
    act = req.app.state.act
    return {"url": act.url, "state": act.ready_state()}


@app.post("/connection/connect")
async def connect(req: Request):
    act = req.app.state.act
    await act.connect()
    return {"url": act.url, "state": act.ready_state()}


@app.post("/connection/disconnect")
async def disconnect(req: Request):
    act = req.app.state.act
    await act.disconnect()
    return {"url": act.url, "state": act.ready_state()}


@app.on_event("startup")
async def start_services():
    if st.ACT_AUTOCONNECT:
        print(f"[Startup] Connecting to combat log at {app.state.act.url}")
        await app.state.act.connect()
    else:
        print("[Startup] Autoconnect disabled; POST /connection/connect to start")


@app.on_event("shutdown")
async def stop_services():
    await app.state.act.disconnect()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=st.SERVER_HOST, port=st.SERVER_PORT, access_log=False, log_level="warning")
