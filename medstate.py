# medstate.py
# Screen state for Medminder: the medicine list, the add/edit form, and the
# reducer that moves between them. No Kivy imports here; main.py renders it.

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from applog import logger

# -------------------------
# Entity
# -------------------------
@dataclass(frozen=True)
class Medicine:
    id: int
    name: str
    dosage: str
    schedule: str

SAMPLE_MEDICINES: Tuple[Medicine, ...] = (
    Medicine(1, "Paracetamol", "500mg", "Morning"),
    Medicine(2, "Aspirin", "300mg", "Afternoon"),
    Medicine(3, "Ibuprofen", "200mg", "Evening"),
)

# -------------------------
# Errors
# -------------------------
class MedminderError(Exception):
    pass

class InvalidTransition(MedminderError):
    def __init__(self, mode: "FormMode", action: object):
        self.mode = mode
        self.action = action
        super().__init__(f"{type(action).__name__} not allowed in mode {mode.value}")

# -------------------------
# Store operations
# -------------------------
def add_medicine(store: Tuple[Medicine, ...], name: str, dosage: str, schedule: str) -> Tuple[Medicine, ...]:
    # size + 1 can reuse an id after a delete; kept as-is
    med = Medicine(len(store) + 1, name, dosage, schedule)
    return tuple(store) + (med,)

def update_medicine(store: Tuple[Medicine, ...], med_id: int,
                    name: str, dosage: str, schedule: str) -> Tuple[Medicine, ...]:
    return tuple(
        Medicine(m.id, name, dosage, schedule) if m.id == med_id else m
        for m in store
    )

def delete_medicine(store: Tuple[Medicine, ...], med_id: int) -> Tuple[Medicine, ...]:
    return tuple(m for m in store if m.id != med_id)

# -------------------------
# Form state
# -------------------------
class FormMode(str, Enum):
    IDLE = "idle"
    ADDING = "adding"
    EDITING = "editing"

@dataclass(frozen=True)
class FormState:
    mode: FormMode = FormMode.IDLE
    name: str = ""
    dosage: str = ""
    schedule: str = ""
    edit_target: Optional[Medicine] = None

    @property
    def is_open(self) -> bool:
        return self.mode is not FormMode.IDLE

    @property
    def submit_label(self) -> str:
        return "Add" if self.mode is FormMode.ADDING else "Update"

IDLE_FORM = FormState()

@dataclass(frozen=True)
class ScreenState:
    medicines: Tuple[Medicine, ...] = SAMPLE_MEDICINES
    form: FormState = field(default_factory=FormState)

# -------------------------
# Actions
# -------------------------
@dataclass(frozen=True)
class StartAdd:
    pass

@dataclass(frozen=True)
class StartEdit:
    medicine: Medicine

@dataclass(frozen=True)
class ChangeName:
    text: str

@dataclass(frozen=True)
class ChangeDosage:
    text: str

@dataclass(frozen=True)
class ChangeSchedule:
    text: str

@dataclass(frozen=True)
class Submit:
    pass

@dataclass(frozen=True)
class Cancel:
    pass

@dataclass(frozen=True)
class Delete:
    med_id: int

Action = Union[StartAdd, StartEdit, ChangeName, ChangeDosage, ChangeSchedule, Submit, Cancel, Delete]

_DRAFT_FIELDS = {ChangeName: "name", ChangeDosage: "dosage", ChangeSchedule: "schedule"}

def reduce(state: ScreenState, action: Action) -> ScreenState:
    """Return the state after applying action; state itself is never mutated.

    Raises InvalidTransition when the form mode cannot accept the action
    (e.g. Submit while idle, StartAdd while a form is already open).
    """
    form = state.form

    if isinstance(action, StartAdd):
        if form.mode is not FormMode.IDLE:
            raise InvalidTransition(form.mode, action)
        return replace(state, form=FormState(mode=FormMode.ADDING))

    if isinstance(action, StartEdit):
        m = action.medicine
        return replace(state, form=FormState(
            mode=FormMode.EDITING, name=m.name, dosage=m.dosage, schedule=m.schedule, edit_target=m,
        ))

    if isinstance(action, (ChangeName, ChangeDosage, ChangeSchedule)):
        if not form.is_open:
            raise InvalidTransition(form.mode, action)
        return replace(state, form=replace(form, **{_DRAFT_FIELDS[type(action)]: action.text}))

    if isinstance(action, Submit):
        if form.mode is FormMode.ADDING:
            meds = add_medicine(state.medicines, form.name, form.dosage, form.schedule)
        elif form.mode is FormMode.EDITING:
            meds = update_medicine(state.medicines, form.edit_target.id, form.name, form.dosage, form.schedule)
        else:
            raise InvalidTransition(form.mode, action)
        return ScreenState(medicines=meds, form=IDLE_FORM)

    if isinstance(action, Cancel):
        if not form.is_open:
            raise InvalidTransition(form.mode, action)
        return replace(state, form=IDLE_FORM)

    if isinstance(action, Delete):
        return replace(state, medicines=delete_medicine(state.medicines, action.med_id))

    raise TypeError(f"unknown action: {action!r}")

# -------------------------
# Controller / view-model
# -------------------------
@dataclass(frozen=True)
class MedicineRow:
    medicine: Medicine

    @property
    def text(self) -> str:
        return self.medicine.name

    @property
    def secondary_text(self) -> str:
        return f"Dosage: {self.medicine.dosage}, Schedule: {self.medicine.schedule}"

Listener = Callable[[ScreenState], None]

class MedicineScreenController:
    """Owns the screen state; views read projections and call the action methods."""

    def __init__(self, medicines: Tuple[Medicine, ...] = SAMPLE_MEDICINES):
        self._state = ScreenState(medicines=tuple(medicines), form=IDLE_FORM)
        self._listeners: List[Listener] = []

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def medicines(self) -> Tuple[Medicine, ...]:
        return self._state.medicines

    @property
    def form(self) -> FormState:
        return self._state.form

    @property
    def rows(self) -> List[MedicineRow]:
        return [MedicineRow(m) for m in self._state.medicines]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def dispatch(self, action: Action) -> ScreenState:
        before = self._state
        after = reduce(before, action)
        self._state = after
        self._log_change(before, after, action)
        for listener in list(self._listeners):
            listener(after)
        return after

    def _log_change(self, before: ScreenState, after: ScreenState, action: Action):
        if before.form.mode is not after.form.mode:
            logger.debug(f"form mode {before.form.mode.value} -> {after.form.mode.value}")
        if isinstance(action, Submit) and before.form.mode is FormMode.ADDING:
            new = after.medicines[-1]
            if any(m.id == new.id for m in before.medicines):
                logger.warning(f"added medicine id={new.id} duplicates an existing id")
            logger.info(f"added medicine id={new.id} {new.name}")
        elif isinstance(action, Submit):
            logger.info(f"updated medicine id={before.form.edit_target.id}")
        elif isinstance(action, Delete):
            removed = len(before.medicines) - len(after.medicines)
            logger.info(f"deleted medicine id={action.med_id} removed={removed}")

    # Action shortcuts for the view layer
    def start_add(self):
        return self.dispatch(StartAdd())

    def start_edit(self, medicine: Medicine):
        return self.dispatch(StartEdit(medicine))

    def change_name(self, text: str):
        return self.dispatch(ChangeName(text))

    def change_dosage(self, text: str):
        return self.dispatch(ChangeDosage(text))

    def change_schedule(self, text: str):
        return self.dispatch(ChangeSchedule(text))

    def submit(self):
        return self.dispatch(Submit())

    def cancel(self):
        return self.dispatch(Cancel())

    def delete(self, med_id: int):
        return self.dispatch(Delete(med_id))
