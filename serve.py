import asyncio
import logging
import signal

from http_server.request import Request
from http_server.response import Response, json_response
from http_server.server import HTTPServer
from snapkv.api import StatusCode, ValidationError, validate_key, validate_value
from snapkv.config import Settings
from snapkv.engine import Engine

logger = logging.getLogger(__name__)


def result(status: int, code: StatusCode, message: str, data: dict | None = None) -> Response:
    payload = {"message": message, "statusCode": int(code)}
    if data is not None:
        payload["data"] = data
    return json_response(status, payload)


async def register_routes(server: HTTPServer, engine: Engine, settings: Settings):

    @server.route('/key', ['POST'])
    async def set_key(request: Request) -> Response:
        if not request.json_valid or request.payload is None:
            return result(400, StatusCode.INVALID_JSON, "invalid JSON")

        try:
            key = validate_key(request.payload.get("key"), settings.max_key_length)
            value = validate_value(request.payload.get("value"), settings.max_value_size)
        except ValidationError as e:
            return result(400, e.status_code, e.message)

        try:
            _, exists = await engine.get(key)
        except Exception as e:
            logger.error(f"failed to get key {key!r}: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to get key")

        if exists:
            return result(409, StatusCode.KEY_EXISTS, "key already exists")

        try:
            await engine.set(key, value)
        except Exception as e:
            logger.error(f"failed to set key {key!r}: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to set key")

        return result(201, StatusCode.SUCCESS, "key created successfully")

    @server.route('/key/{key}', ['GET'])
    async def get_key(request: Request) -> Response:
        key = request.get("key")
        if not key:
            return result(400, StatusCode.INVALID_KEY, "invalid key")

        try:
            value, found = await engine.get(key)
        except Exception as e:
            logger.error(f"failed to get key {key!r}: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to get key")

        if not found:
            return result(404, StatusCode.KEY_NOT_FOUND, "key not found")

        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"value of key {key!r} is not valid UTF-8: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to get key")

        return result(200, StatusCode.SUCCESS, "key found", data={"key": key, "value": text})

    @server.route('/key/{key}', ['DELETE'])
    async def delete_key(request: Request) -> Response:
        key = request.get("key")
        if not key:
            return result(400, StatusCode.INVALID_KEY, "invalid key")

        try:
            _, found = await engine.get(key)
        except Exception as e:
            logger.error(f"failed to get key {key!r}: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to get key")

        if not found:
            return result(404, StatusCode.KEY_NOT_FOUND, "key not found")

        try:
            await engine.delete(key)
        except Exception as e:
            logger.error(f"failed to delete key {key!r}: {e}")
            return result(500, StatusCode.STORAGE_ERROR, "failed to delete key")

        return result(200, StatusCode.SUCCESS, "key deleted successfully")


async def main(settings: Settings | None = None):
    settings = settings or Settings.from_env()
    server = HTTPServer(host=settings.host, port=settings.port)

    async with Engine(settings.data_file, sync_interval=settings.sync_interval) as engine:
        await register_routes(server, engine, settings)
        logger.debug(f"Registered routes: {list(server.routes)}")

        serve_task = asyncio.create_task(server.start())
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, serve_task.cancel)
            except NotImplementedError:
                pass  # Windows: KeyboardInterrupt still stops asyncio.run

        logger.info(
            f"Serving {engine.size()} keys, snapshot every {settings.sync_interval}s "
            f"to {engine.data_file}"
        )
        await serve_task

    logger.info("Engine closed, final snapshot written")


def run():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
