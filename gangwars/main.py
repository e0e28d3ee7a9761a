import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from gangwars.db import create_tables, engine
from gangwars.errors import GangWarsError
from gangwars.routers import gangwars
from gangwars.routers.gangwars import close_announcer

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app):
    """Create the Gang Wars tables.
    This function is called to start the server.
    """
    await create_tables(engine)
    try:
        yield
    finally:
        await close_announcer()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(gangwars.gangwars_router)


@app.exception_handler(GangWarsError)
async def gangwars_error_handler(request: Request, e: GangWarsError):
    logging.info(f"{request.method} {request.url.path} rejected: {e.reason}")
    return JSONResponse(status_code=e.status_code, content={"detail": e.reason})


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080, reload=True)
