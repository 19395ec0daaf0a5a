import asyncio

from marketboard.db.session import create_tables


async def main():
    await create_tables()
    print("✅ Tables created/verified")


if __name__ == "__main__":
    asyncio.run(main())
