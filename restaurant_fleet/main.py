"""Run a short in-process delivery demo on the default floor."""

from __future__ import annotations

import argparse
import asyncio

import structlog

from restaurant_fleet.enterprise.config.settings import AppSettings, get_settings
from restaurant_fleet.enterprise.core import Order, RobotStatus
from restaurant_fleet.observability import configure_logging
from restaurant_fleet.persistence import InMemoryFleetRepository
from restaurant_fleet.provisioning import seed_repository
from restaurant_fleet.services import FleetCoordinator, InMemoryMessageBus
from restaurant_fleet.services.events import Audience

logger = structlog.get_logger(__name__)


async def run_demo(settings: AppSettings, orders: int) -> None:
    repository = InMemoryFleetRepository()
    await seed_repository(repository, settings)
    bus = InMemoryMessageBus()

    async def show(payload: dict) -> None:
        fields = {key: value for key, value in payload.items() if key != "event"}
        logger.info(payload["event"], **fields)

    coordinator = FleetCoordinator(repository, bus, settings)
    await bus.subscribe(coordinator.events.topic(Audience.FLEET), show)

    table_numbers = sorted(repository.tables)
    for index in range(orders):
        order_id = f"order-{index + 1}"
        table_number = table_numbers[index % len(table_numbers)]
        await repository.add_order(Order(order_id=order_id, table_number=table_number))
        result = await coordinator.handle_order_ready(order_id)
        logger.info("order_ready", order_id=order_id, outcome=result.outcome.value, robot_id=result.robot_id)

    try:
        while coordinator.running_tasks():
            await asyncio.sleep(settings.fleet.outbound_step_seconds)
    finally:
        await coordinator.shutdown()

    robots = await repository.list_robots()
    idle = sum(1 for robot in robots if robot.status == RobotStatus.IDLE)
    delivered = sum(robot.stats.total_deliveries for robot in robots)
    logger.info("demo_finished", robots=len(robots), idle=idle, deliveries=delivered)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the restaurant robot delivery demo.")
    parser.add_argument("--num-robots", type=int, default=3, help="Number of robots to provision.")
    parser.add_argument("--orders", type=int, default=3, help="Number of ready orders to dispatch.")
    parser.add_argument("--step-seconds", type=float, default=0.2, help="Delay between route steps.")
    args = parser.parse_args()

    base = get_settings()
    demo_settings = base.model_copy(
        update={
            "fleet": base.fleet.model_copy(
                update={
                    "robot_count": args.num_robots,
                    "outbound_step_seconds": args.step_seconds,
                    "return_step_seconds": args.step_seconds,
                    "return_delay_seconds": args.step_seconds,
                }
            )
        }
    )
    configure_logging(demo_settings.logging)
    asyncio.run(run_demo(demo_settings, args.orders))
