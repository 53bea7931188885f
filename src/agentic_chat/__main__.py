import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from agentic_chat.app_config import load_json_config, parse_app_config, resolve_runtime_env
from agentic_chat.bootstrap import bootstrap_runtime


async def main() -> None:
    load_dotenv()

    app_config = parse_app_config(load_json_config())
    env = resolve_runtime_env(app_config.provider_name)
    if not env.provider_api_key:
        logger.error(f"{env.provider_env_var} environment variable is required.")
        sys.exit(1)

    runtime = await bootstrap_runtime(app_config, env)

    print("agentic-chat (type 'exit' to quit, '/help' for commands)")
    print(f"Model: {app_config.provider_name}/{app_config.model}")
    print("Tools:")
    for t in runtime.tools:
        print(f"  - {t.name}")
    print(f"Storage: {runtime.storage_description}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    try:
        while True:
            try:
                user_input = input("you> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()

            if trimmed in ("exit", "quit"):
                break

            if not trimmed:
                continue

            try:
                await runtime.app.run(trimmed)
                print()
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        await runtime.history.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
