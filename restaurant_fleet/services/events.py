"""Fleet event names and their routing to audience topics."""

from __future__ import annotations

import enum
from typing import Any, Iterable, List, Optional, Sequence

from restaurant_fleet.enterprise.core import GridPosition, RobotPosition
from restaurant_fleet.services.messaging import MessageBus, MessageEnvelope


class FleetEvent(str, enum.Enum):
    ASSIGNED = "robot.assigned"
    POSITION = "robot.position"
    DELIVERED = "robot.delivered"
    IDLE = "robot.idle"
    EMERGENCY_STOP = "robot.emergency_stop"


class Audience:
    KITCHEN = "kitchen"
    FLEET = "fleet"

    @staticmethod
    def table(table_number: int) -> str:
        return f"table/{table_number}"


class FleetEventPublisher:
    """Publishes fleet events to every audience interested in them.

    Events for one robot are published in the order the coordinator emits
    them; nothing here buffers or reorders.
    """

    def __init__(self, bus: MessageBus, topic_prefix: str = "restaurant") -> None:
        self.bus = bus
        self.topic_prefix = topic_prefix

    def topic(self, audience: str) -> str:
        return f"{self.topic_prefix}/{audience}"

    async def publish(self, event: FleetEvent, audiences: Iterable[str], **fields: Any) -> None:
        payload = {"event": event.value, **fields}
        for audience in audiences:
            await self.bus.publish(MessageEnvelope(topic=self.topic(audience), payload=payload))

    async def robot_assigned(self, robot_id: str, order_id: str, route: Sequence[GridPosition]) -> None:
        await self.publish(
            FleetEvent.ASSIGNED,
            (Audience.KITCHEN, Audience.FLEET),
            robot_id=robot_id,
            order_id=order_id,
            route=[point.model_dump() for point in route],
        )

    async def robot_position(self, robot_id: str, position: RobotPosition, progress: float) -> None:
        await self.publish(
            FleetEvent.POSITION,
            (Audience.FLEET,),
            robot_id=robot_id,
            position=position.model_dump(mode="json"),
            progress=progress,
        )

    async def robot_delivered(
        self,
        order_id: str,
        robot_id: str,
        table_number: Optional[int],
        table_or_address: Optional[str],
    ) -> None:
        audiences: List[str] = [Audience.KITCHEN, Audience.FLEET]
        if table_number is not None:
            audiences.append(Audience.table(table_number))
        await self.publish(
            FleetEvent.DELIVERED,
            audiences,
            order_id=order_id,
            table_or_address=table_or_address,
            robot_id=robot_id,
        )

    async def robot_idle(self, robot_id: str) -> None:
        await self.publish(FleetEvent.IDLE, (Audience.FLEET,), robot_id=robot_id)

    async def emergency_stop(self) -> None:
        await self.publish(FleetEvent.EMERGENCY_STOP, (Audience.FLEET,))
