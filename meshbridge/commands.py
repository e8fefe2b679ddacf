"""Command names understood by the viewer bridge."""

URL = "url"
WAIT = "wait"
CAPTURE_IMAGE = "capture_image"
SET_TARGET = "set_target"
GET_SCENE = "get_scene"

SET_TRANSFORM = "set_transform"
SET_OBJECT = "set_object"
SET_PROPERTY = "set_property"
DELETE = "delete"
SET_ANIMATION = "set_animation"

MESHCAT_COMMANDS = frozenset(
    {SET_TRANSFORM, SET_OBJECT, SET_PROPERTY, DELETE, SET_ANIMATION}
)


def is_meshcat_command(command: str) -> bool:
    """Return True if the command edits the scene tree."""
    return command in MESHCAT_COMMANDS