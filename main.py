"""Main entry point for the answer-rag server."""

import asyncio
import sys

from answer_rag import AnswerRAGServer, Settings


async def main() -> None:
    """Main entry point."""
    try:
        settings = Settings()

        server = AnswerRAGServer(settings)
        await server.start()

    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
