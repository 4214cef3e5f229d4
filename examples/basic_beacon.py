import asyncio
import logging
import os
import sys

# Add ktbeacon to path so we can run directly
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ktbeacon import BeaconClient

logging.basicConfig(level=logging.DEBUG)


async def main() -> None:
    async with BeaconClient(os.getenv("KTBEACON_API_KEY", "demo-key"), use_test_server=True, validate_params=True) as client:
        tag = client.generate_tracking_tag()

        await client.track_invite_sent(1001, "2002,2003", tag, subtype1="holiday_promo")
        await client.track_invite_response(tag, recipient_user_id=2002)
        await client.track_application_added(2002, tracking_tag=tag)

        def on_rejected(error):
            print(f"not sent: {error} (param {error.param})")

        # gc1 is out of range, nothing goes on the wire
        await client.track_event(1001, "boss_fight", goal_count1=20000, on_validation_error=on_rejected)

        done = await client.track_revenue(1001, 499, type="direct", data='{"sku": "gems_100"}')
        if done is not None:
            await done
            print("revenue beacon finished")


if __name__ == "__main__":
    asyncio.run(main())
