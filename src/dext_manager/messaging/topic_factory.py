from __future__ import annotations

from collections.abc import Sequence
import re


class TopicFactory:
    """Factory class for creating and validating standardized topic names."""

    TOPIC_SEPARATOR = "::"
    WILDCARD_CHAR = "*"

    # region Create and validate topics

    @classmethod
    def create_topic_from_parts(cls, topic_parts: Sequence[str]) -> str:
        """Create a topic string from a sequence of parts.

        Args:
            topic_parts (Sequence[str]): The parts of the topic (can be list, tuple, or any sequence)

        Returns:
            str: The topic string with parts joined by the topic separator
        """
        return cls.TOPIC_SEPARATOR.join(topic_parts)

    @classmethod
    def validate_topic(cls, topic: str) -> None:
        """Validates if a topic has the correct structure and raises ValueError if invalid.

        Topic requirements:
        - Topic consists of one or multiple parts split by the topic separator
        - Parts can contain letters, numbers, wildcard '*', and the characters '@', '-', '_', '#', '.'
        - Topic is case sensitive and must be lowercase

        Args:
            topic (str): The topic to validate

        Raises:
            ValueError: If the topic is invalid
        """
        if not topic:
            raise ValueError(f"$topic cannot be empty, but provided value is: '{topic}'")

        for part in topic.split(cls.TOPIC_SEPARATOR):
            if not part:
                raise ValueError(
                    f"$topic parts cannot be empty, but found empty part in: '{topic}' (e.g., 'part1{cls.TOPIC_SEPARATOR}{cls.TOPIC_SEPARATOR}part2')",
                )

            if not re.match(rf"^[a-zA-Z0-9{re.escape(cls.WILDCARD_CHAR)}@\-_#.]+$", part):
                raise ValueError(
                    f"$topic part '{part}' contains invalid characters. Only letters, numbers, '{cls.WILDCARD_CHAR}', '@', '-', '_', '#', '.' are allowed",
                )

        if topic.lower() != topic:
            raise ValueError(f"$topic must be lowercase, but provided value is: '{topic}'")

    # endregion

    # region Create topics for activation

    @classmethod
    def create_topic_for_activation_status(cls, extension_identifier: str) -> str:
        """Create the topic on which status changes of one extension are published.

        Args:
            extension_identifier (str): Identifier of the driver extension.

        Returns:
            str: The topic name in format 'activation_status::{extension_identifier}' (lowercase).

        Raises:
            ValueError: If $extension_identifier does not produce a valid topic part.
        """
        topic = cls.create_topic_from_parts(["activation_status", extension_identifier.lower()])
        cls.validate_topic(topic)
        return topic

    @classmethod
    def create_topic_for_all_activation_statuses(cls) -> str:
        """Create the wildcard topic that matches status changes of every extension."""
        return cls.create_topic_from_parts(["activation_status", cls.WILDCARD_CHAR])

    # endregion
