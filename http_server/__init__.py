"""
Minimal asyncio HTTP/1.1 server used to expose the engine.
"""
