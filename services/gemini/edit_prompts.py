"""Prompt text for photorealistic background edits."""

EDIT_DIRECTIVE = "Edit this image. Create a photorealistic output."

DEFAULT_INSTRUCTION = (
    "Change the background of this image to be a modern, bright IT company office "
    "with glass walls and tech vibes. The person is a software engineer. Keep the "
    "person intact and realistic, just replace the outdoor background."
)


def build_edit_instruction(instruction: str) -> str:
    """Wrap the user's instruction with the fixed photorealistic directive."""
    return f"{EDIT_DIRECTIVE} {instruction.strip()}"
