# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "replaycache",
#     "fastapi",
#     "httpx",
# ]
#
# [tool.uv.sources]
# replaycache = { path = "../", editable = true }
# ///


import time

import anyio
import httpx
from fastapi import FastAPI

from replaycache import CacheMiddleware, Config

app = FastAPI()

processed_requests = 0


@app.get("/items/")
async def read_item():
    global processed_requests
    processed_requests += 1
    return {"created_at": time.time(), "processed_requests": processed_requests}


async def main():
    send_stream, receive_stream = anyio.create_memory_object_stream[str](10)
    cached_app = CacheMiddleware(app, config=Config(invalidation=receive_stream))

    async with anyio.create_task_group() as tg:
        tg.start_soon(cached_app.store.consume, receive_stream)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=cached_app)) as client:
            for i in range(6):
                if i == 3:
                    print("Invalidating GET:/items")
                    await send_stream.send("GET:/items")
                    await anyio.sleep(0)
                response = await client.get("http://testserver/items/")
                data = response.json()
                print(f"Response: created_at={data['created_at']:.2f}, processed_requests={data['processed_requests']}")

        await send_stream.aclose()


if __name__ == "__main__":
    anyio.run(main)
