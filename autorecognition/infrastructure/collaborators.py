"""
Collaborators around the recognition pipeline: screen capture, trigger signal
and downstream expense creation
"""
from abc import ABC, abstractmethod
from typing import Callable, Optional

from PIL import Image

from autorecognition.core.exceptions import PermissionDeniedError, ScreenCaptureFailedError
from autorecognition.core.logging import get_logger
from autorecognition.models.domain import ExpenseDraft
from autorecognition.utils.image_utils import ImageInput, load_image

logger = get_logger(__name__)

TriggerCallback = Callable[[], object]


class ScreenCaptureSource(ABC):
    """Supplies the screen image of one recognition attempt"""

    @abstractmethod
    async def capture_screen(self) -> Image.Image:
        """
        Acquire the current screen

        Raises:
            PermissionDeniedError: Capture permission is missing
            ScreenCaptureFailedError: The image could not be acquired
        """
        pass

    def clear(self) -> None:
        """Drop any image held for the next capture"""
        return None


class UploadedScreenCapture(ScreenCaptureSource):
    """
    Capture source fed from outside the process

    The HTTP API stores the submitted screenshot here before firing the
    trigger; the next capture consumes it.
    """

    def __init__(self, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self._pending: Optional[ImageInput] = None

    def submit(self, image: ImageInput) -> None:
        self._pending = image

    def clear(self) -> None:
        self._pending = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    async def capture_screen(self) -> Image.Image:
        if not self.permission_granted:
            raise PermissionDeniedError()

        image, self._pending = self._pending, None

        if image is None:
            raise ScreenCaptureFailedError("No screenshot has been submitted")

        try:
            return load_image(image)
        except Exception as e:
            raise ScreenCaptureFailedError(
                f"Failed to decode screenshot: {str(e)}",
                details={"error": str(e)}
            )


class TriggerSource(ABC):
    """Emits a signal each time the user asks for a recognition"""

    @abstractmethod
    def start(self, callback: TriggerCallback) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class ManualTriggerSource(TriggerSource):
    """Trigger fired programmatically, e.g. by an API call"""

    def __init__(self):
        self._callback: Optional[TriggerCallback] = None

    @property
    def is_started(self) -> bool:
        return self._callback is not None

    def start(self, callback: TriggerCallback) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def fire(self):
        """Invoke the callback; returns its result, or None when stopped"""
        if self._callback is None:
            logger.debug("Trigger fired while stopped")
            return None
        return self._callback()


class ExpenseSink(ABC):
    """Receives confirmed expense drafts"""

    @abstractmethod
    async def submit(self, draft: ExpenseDraft) -> None:
        pass


class LoggingExpenseSink(ExpenseSink):
    """Default sink: logs each confirmed draft"""

    async def submit(self, draft: ExpenseDraft) -> None:
        logger.info(
            "Expense draft confirmed",
            amount=str(draft.amount),
            category=draft.category.value,
            category_name=draft.category.display_name,
            description=draft.description,
            payment_method=draft.payment_method
        )
