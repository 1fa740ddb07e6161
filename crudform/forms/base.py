"""Generic form controller driving the load/save/delete/reset/cancel lifecycle.

A form owns one record, the identifier addressing it on the backend and the
attachments waiting to be uploaded with it. Its ``form_state`` decides what
``save`` and ``delete`` do; consumers move between states with the ``prepare_*``
methods and the lifecycle itself.

Hooks are optional callables stored as attributes named ``on_{event}``. They can
be passed to the constructor, assigned afterwards or defined as methods on a
subclass. Plain functions and coroutine functions are both accepted.

The ``on_before_*`` hooks intercept an operation: they receive a ``proceed``
continuation and the operation only runs once the hook calls it. Calling
``proceed()`` starts the operation right away and returns the ``asyncio.Task``
running it, so an async hook can ``await proceed()`` to wait for the outcome.
Operations started while the hook runs are awaited before the lifecycle method
returns and a hook that raises cancels them. A hook that keeps ``proceed`` and
calls it later defers the operation.

Examples:
    ```python
    class CustomerForm(FormBase[Customer, Identifier[int]]):
        def on_response_succeeded(self, result):
            notify("Saved")

        async def on_before_delete(self, proceed):
            if await confirm("Delete this customer?"):
                await proceed()

    form = CustomerForm(service, Customer, Identifier[int])
    form.prepare_edit(Identifier[int](model=42))
    await form.load()
    form.record.name = "Jane"
    await form.save(ModelValidator(CustomerRules))
    ```
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from inspect import isawaitable
from typing import Any

from crudform.forms.state import FormState
from crudform.http.result import Outcome, ResponseResult
from crudform.http.service import HttpCrudService
from crudform.models import BlobData, Identifier, Paged
from crudform.validation import EmptyValidator, Validator

logger = logging.getLogger(__name__)

type Hook = Callable[..., Any]
type Proceed = Callable[[], asyncio.Task]

HOOK_NAMES = frozenset(
    {
        "on_load",
        "on_load_succeeded",
        "on_load_exception",
        "on_load_failed",
        "on_response",
        "on_response_succeeded",
        "on_response_exception",
        "on_response_failed",
        "on_response_add_with_blobs",
        "on_response_add_with_blobs_succeeded",
        "on_response_add_with_blobs_exception",
        "on_response_add_with_blobs_failed",
        "on_response_update_with_blobs",
        "on_response_update_with_blobs_succeeded",
        "on_response_update_with_blobs_exception",
        "on_response_update_with_blobs_failed",
        "on_before_reset",
        "on_after_reset",
        "on_before_cancel",
        "on_after_cancel",
        "on_before_save",
        "on_after_save",
        "on_before_delete",
        "on_after_delete",
    }
)

OUTCOME_SUFFIXES = {
    Outcome.SUCCEEDED: "_succeeded",
    Outcome.EXCEPTION: "_exception",
    Outcome.FAILED: "_failed",
}


class FormBase[T, TIdentifier: Identifier]:
    """Base class for forms editing one record of a backend resource.

    Args:
        service: Service sending the CRUD requests
        record_factory: Zero argument callable creating an empty record
        identifier_factory: Zero argument callable creating an empty identifier
        blob_validator: Validator for attachments, the service's own when omitted
        form_state: Initial state, ``FormState.CREATE`` by default
        **hooks: Any of the ``on_*`` hooks listed in ``HOOK_NAMES``
    """

    on_load: Hook | None = None
    on_load_succeeded: Hook | None = None
    on_load_exception: Hook | None = None
    on_load_failed: Hook | None = None
    on_response: Hook | None = None
    on_response_succeeded: Hook | None = None
    on_response_exception: Hook | None = None
    on_response_failed: Hook | None = None
    on_response_add_with_blobs: Hook | None = None
    on_response_add_with_blobs_succeeded: Hook | None = None
    on_response_add_with_blobs_exception: Hook | None = None
    on_response_add_with_blobs_failed: Hook | None = None
    on_response_update_with_blobs: Hook | None = None
    on_response_update_with_blobs_succeeded: Hook | None = None
    on_response_update_with_blobs_exception: Hook | None = None
    on_response_update_with_blobs_failed: Hook | None = None
    on_before_reset: Hook | None = None
    on_after_reset: Hook | None = None
    on_before_cancel: Hook | None = None
    on_after_cancel: Hook | None = None
    on_before_save: Hook | None = None
    on_after_save: Hook | None = None
    on_before_delete: Hook | None = None
    on_after_delete: Hook | None = None

    def __init__(
        self,
        service: HttpCrudService[T, TIdentifier],
        record_factory: Callable[[], T],
        identifier_factory: Callable[[], TIdentifier],
        *,
        blob_validator: Validator | None = None,
        form_state: FormState = FormState.CREATE,
        **hooks: Hook,
    ):
        unknown = set(hooks) - HOOK_NAMES
        if unknown:
            raise TypeError(f"Unknown form hooks: {', '.join(sorted(unknown))}")

        for name, hook in hooks.items():
            setattr(self, name, hook)

        self.service = service
        self.record_factory = record_factory
        self.identifier_factory = identifier_factory
        self.blob_validator = blob_validator
        self.record: T = record_factory()
        self.records: list[T] = []
        self.paged: Paged[list[T]] | None = None
        self.identifier: TIdentifier = identifier_factory()
        self.blob_datas: list[BlobData] = []
        self.response: ResponseResult | None = None
        self.response_add_with_blobs: ResponseResult | None = None
        self.response_update_with_blobs: ResponseResult | None = None
        self._form_state = form_state

    @property
    def form_state(self) -> FormState:
        return self._form_state

    # --- State preparation ----------------------------------------------------

    def prepare_create(self) -> None:
        self._clear()
        self._set_state(FormState.CREATE)

    def prepare_edit(self, identifier: TIdentifier) -> None:
        self.identifier = identifier
        self._set_state(FormState.EDIT)

    def prepare_copy(self) -> None:
        """Keep the current record but save it as a new one."""
        self.identifier = self.identifier_factory()
        self._set_state(FormState.COPY)

    def prepare_delete(self, identifier: TIdentifier | None = None) -> None:
        if identifier is not None:
            self.identifier = identifier
        self._set_state(FormState.DELETE)

    def add_blob(self, blob: BlobData) -> None:
        self.blob_datas.append(blob)

    # --- Lifecycle ------------------------------------------------------------

    async def load(self) -> ResponseResult | None:
        """Fetch the record addressed by ``identifier`` and replace ``record``."""
        if self._has_identifier():
            self.response = await self.service.get_one(self.identifier, EmptyValidator())
            if self.response.is_succeeded and self.response.response.data is not None:
                self.record = self.response.response.data

            await self._dispatch("on_load", self.response)
        else:
            logger.debug(f"{type(self).__name__} has no identifier, nothing to load")

        await self._fire("on_load", self.response)
        return self.response

    async def load_page(
        self, query: Any = None, validator: Validator | None = None
    ) -> ResponseResult:
        """Fetch a page of records into ``records`` and ``paged``."""
        result = await self.service.get_paged(query, validator)
        if result.is_succeeded and result.response.data is not None:
            self.paged = result.response.data
            self.records = list(self.paged.data or [])
        return result

    async def save(self, validator: Validator | None = None) -> None:
        """Create or update the record depending on ``form_state``."""
        if not self._form_state.can_save:
            logger.debug(f"Cannot save {type(self).__name__} in state {self._form_state.name}")
            return

        if self._form_state is FormState.EDIT:
            operation = self._update
        else:
            operation = self._create

        await self._intercept("on_before_save", lambda: operation(validator))

    async def delete(self, validator: Validator | None = None) -> None:
        """Delete the record addressed by ``identifier``; only in ``FormState.DELETE``."""
        if self._form_state is not FormState.DELETE:
            logger.debug(
                f"Cannot delete {type(self).__name__} in state {self._form_state.name}"
            )
            return

        await self._intercept("on_before_delete", lambda: self._delete(validator))

    async def reset(self) -> None:
        await self._intercept("on_before_reset", self._reset)

    async def cancel(self) -> None:
        await self._intercept("on_before_cancel", self._cancel)

    # --- Operations -----------------------------------------------------------

    async def _create(self, validator: Validator | None) -> None:
        if self.blob_datas:
            self.response_add_with_blobs = await self.service.add_with_blobs(
                self.record,
                validator,
                list(self.blob_datas),
                blob_validator=self.blob_validator,
            )
            await self._handle_blob_response(
                "on_response_add_with_blobs", self.response_add_with_blobs
            )
        else:
            self.response = await self.service.add(self.record, validator)
            await self._handle_response(FormState.EDIT)

        await self._fire("on_after_save")

    async def _update(self, validator: Validator | None) -> None:
        if self.blob_datas:
            self.response_update_with_blobs = await self.service.update_with_blobs(
                self.record,
                validator,
                list(self.blob_datas),
                blob_validator=self.blob_validator,
            )
            await self._handle_blob_response(
                "on_response_update_with_blobs", self.response_update_with_blobs
            )
        else:
            self.response = await self.service.update(self.record, validator)
            await self._handle_response(FormState.EDIT)

        await self._fire("on_after_save")

    async def _delete(self, validator: Validator | None) -> None:
        self.response = await self.service.delete(self.identifier, validator)
        await self._handle_response(FormState.DELETED)

        envelope = self.response.response
        await self._fire("on_after_delete", envelope.data if envelope is not None else None)

    async def _reset(self) -> None:
        self._clear()
        await self._fire("on_after_reset")

    async def _cancel(self) -> None:
        self._clear()
        await self._fire("on_after_cancel")

    async def _handle_response(self, success_state: FormState) -> None:
        await self._fire("on_response", self.response)
        if self.response.is_succeeded:
            if self.response.response.data is not None:
                self.record = self.response.response.data
            self._set_state(success_state)

        await self._dispatch("on_response", self.response)

    async def _handle_blob_response(self, hook_name: str, result: ResponseResult) -> None:
        await self._fire(hook_name, result)
        if result.is_succeeded:
            composite = result.response.data
            if composite is not None and composite.record is not None:
                self.record = composite.record
            # Uploaded, so they are not sent again by the next save
            self._discard_blobs()
            self._set_state(FormState.EDIT)

        await self._dispatch(hook_name, result)

    # --- Helpers --------------------------------------------------------------

    def _has_identifier(self) -> bool:
        if self.identifier is None:
            return False
        if isinstance(self.identifier, Identifier):
            return self.identifier.model is not None
        return True

    def _clear(self) -> None:
        self.record = self.record_factory()
        self.identifier = self.identifier_factory()
        self._discard_blobs()

    def _discard_blobs(self) -> None:
        for blob in self.blob_datas:
            blob.close()
        self.blob_datas.clear()

    def _set_state(self, form_state: FormState) -> None:
        if form_state is not self._form_state:
            logger.debug(
                f"{type(self).__name__} state {self._form_state.name} -> {form_state.name}"
            )
        self._form_state = form_state

    async def _fire(self, name: str, *args: Any) -> None:
        hook = getattr(self, name)
        if hook is None:
            return

        result = hook(*args)
        if isawaitable(result):
            await result

    async def _dispatch(self, prefix: str, result: ResponseResult) -> None:
        await self._fire(f"{prefix}{OUTCOME_SUFFIXES[result.outcome]}", result)

    async def _intercept(
        self, hook_name: str, operation: Callable[[], Awaitable[None]]
    ) -> None:
        hook = getattr(self, hook_name)
        if hook is None:
            await operation()
            return

        started: list[asyncio.Task] = []

        def proceed() -> asyncio.Task:
            task = asyncio.ensure_future(operation())
            started.append(task)
            return task

        try:
            result = hook(proceed)
            if isawaitable(result):
                await result
        except BaseException:
            # A failing hook aborts whatever it started
            for task in started:
                task.cancel()
            await asyncio.gather(*started, return_exceptions=True)
            raise

        if not started:
            logger.debug(f"{hook_name} on {type(self).__name__} did not proceed")

        for task in started:
            await task
