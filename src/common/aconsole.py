import asyncio


def _read(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


async def ainput(prompt: str = "") -> str | None:
    """Read one line from stdin without blocking the loop; None on EOF."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _read, prompt)
