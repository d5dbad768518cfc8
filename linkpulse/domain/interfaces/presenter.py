"""Interface for the presentation layer that renders in-app messages.

The SDK decides *which* message to show; rendering it in a window or
overlay and bridging user actions back is the host's job.
"""

import abc
from typing import Callable, Optional

from ..models.common import RenderToken
from ..models.content import ContentItem

ActionCallback = Callable[[str], None]
DismissCallback = Callable[[], None]


class ContentPresenter(abc.ABC):
    """Abstract Base Class for showing a content item to the user."""

    @abc.abstractmethod
    def present(
        self,
        item: ContentItem,
        render_token: RenderToken,
        on_action: Optional[ActionCallback] = None,
        on_dismiss: Optional[DismissCallback] = None,
    ) -> None:
        """Displays the item.

        Args:
            item: The message chosen by the eligibility engine.
            render_token: Short-lived token used to load the rendered message.
            on_action: Called with the action URL when the user taps an action.
            on_dismiss: Must be called once when the presentation ends, whether
                by explicit dismissal or any terminal interaction.
        """
        pass
