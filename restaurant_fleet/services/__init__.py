"""Service layer exports for the restaurant fleet core."""

from .coordinator import (
	AssignmentOutcome,
	AssignmentResult,
	FleetCoordinator,
	StepOutcome,
	StepResult,
)
from .events import Audience, FleetEvent, FleetEventPublisher
from .messaging import (
	AMQPMessageBus,
	InMemoryMessageBus,
	MessageBus,
	MessageEnvelope,
	MQTTMessageBus,
	create_message_bus,
)

__all__ = [
	"AssignmentOutcome",
	"AssignmentResult",
	"FleetCoordinator",
	"StepOutcome",
	"StepResult",
	"Audience",
	"FleetEvent",
	"FleetEventPublisher",
	"MessageBus",
	"MessageEnvelope",
	"InMemoryMessageBus",
	"MQTTMessageBus",
	"AMQPMessageBus",
	"create_message_bus",
]
