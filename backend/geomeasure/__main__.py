# backend/geomeasure/__main__.py
import uvicorn

from geomeasure.config import settings


def main():
    uvicorn.run("geomeasure.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
