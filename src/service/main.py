import os, uvicorn

from agents.reception.app import build_app as build_reception

AGENT_NAME = os.getenv("AGENT_NAME", "reception")

if AGENT_NAME != "reception":
    raise RuntimeError(f"Only reception is wired in this slice. Got AGENT_NAME={AGENT_NAME}")

app = build_reception()

if __name__ == "__main__":
    # Fast local run; uvicorn CLI also works
    port = int(os.getenv("PORT", "8001"))
    uvicorn.run("service.main:app", host="0.0.0.0", port=port, reload=False)
