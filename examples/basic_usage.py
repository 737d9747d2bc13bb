"""
Life360 API Python SDK - Basic Usage Example

Reads credentials from LIFE360_* environment variables, lists the
account's circles and shows members, places and locations of the first one.
"""

import asyncio
import logging
import sys

from life360_api import (
    Life360Client,
    Life360AsyncClient,
    Life360Config,
    AuthenticationError,
    ConfigurationError,
    Life360Error,
)


def sync_example(config: Life360Config) -> None:
    """Synchronous client example."""
    print("=== Sync Client Example ===\n")

    with Life360Client(config) as client:
        session = client.login()
        if session.user:
            print(f"Logged in as: {session.user.first_name} {session.user.last_name}")

        circles = client.get_circles()
        for circle in circles:
            print(f"Circle {circle.name} ({circle.id}), {circle.member_count} member(s)")

        if not circles:
            return

        circle = client.get_circle(circles[0].id)
        for member in circle.members:
            location = member.location
            where = location.short_address if location else "unknown"
            print(f"  {member.full_name}: {where}")

        for place in client.get_circle_places(circle.id):
            print(f"  Place {place.name} r={place.radius}m")

        # A second client can reuse the session without credentials
        other = Life360Client.from_session(session, device_id=client.get_device_id())
        print(f"Second client sees {len(other.get_circles())} circle(s)")
        other.close()


async def async_example(config: Life360Config) -> None:
    """Asynchronous client example."""
    print("\n=== Async Client Example ===\n")

    async with Life360AsyncClient(config) as client:
        circles = await client.get_circles()
        if not circles:
            return

        locations = await client.get_circle_members_location(circles[0].id)
        for location in locations:
            print(f"  {location.user_id}: {location.latitude}, {location.longitude}")

        members = await client.get_circle_members(circles[0].id)
        if members:
            request = await client.request_user_location_update(circles[0].id, members[0].id)
            print(f"Location update requested: {request.request_id}")


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        config = Life360Config.from_env(debug=True)
        sync_example(config)
        asyncio.run(async_example(config))
    except ConfigurationError as e:
        print(f"Set LIFE360_USERNAME/LIFE360_PASSWORD and LIFE360_CLIENT_SECRET: {e.message}")
        return 1
    except AuthenticationError as e:
        print(f"Login failed: {e.status_code} {e.status_text}")
        return 2
    except Life360Error as e:
        print(f"Request failed: {e.to_dict()}")
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
