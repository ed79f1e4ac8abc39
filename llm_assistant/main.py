import logging

from fastapi import FastAPI

from llm_assistant.api.config_review import router as config_router
from llm_assistant.api.learning import router as learning_router
from llm_assistant.api.reports import router as reports_router
from llm_assistant.api.status import router as status_router

logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(message)s")

app = FastAPI(title="LLM Assistant - Firewall Security")

# APIs under /api
app.include_router(status_router, prefix="/api")
app.include_router(reports_router, prefix="/api")
app.include_router(config_router, prefix="/api")
app.include_router(learning_router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    import uvicorn
    uvicorn.run("llm_assistant.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
