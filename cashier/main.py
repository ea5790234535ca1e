from fastapi import FastAPI
from cashier.api.v1.routes_checkout import router as checkout_router
from cashier.core.config import settings
from cashier.core.log import configure_logging

configure_logging(settings)

app = FastAPI(title=settings.APP_NAME)

app.include_router(checkout_router)

@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cashier.main:app", host="0.0.0.0", port=8000)
