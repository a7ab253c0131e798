from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from habit_tracker.auth import Identity, get_current_identity
from habit_tracker.database import get_db
from habit_tracker.habits import HabitRegistry, list_public
from habit_tracker.ledger import CompletionLedger
from habit_tracker.schemas import (
    HabitCreate,
    HabitOut,
    HabitUpdate,
    MessageResponse,
    PublicProfile,
    ToggleRequest,
    ToggleResponse,
    UndoResponse,
)

router = APIRouter(tags=["Habits"])


def get_registry(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> HabitRegistry:
    return HabitRegistry(db, identity.user_id)


def get_ledger(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> CompletionLedger:
    return CompletionLedger(db, identity.user_id)


# --- Public profile ---

# must precede /habits/{habit_id}: GET /habits/habits is the profile of login "habits"
@router.get("/{login}/habits", response_model=PublicProfile)
def public_profile(login: str, db: Session = Depends(get_db)):
    user, habits = list_public(db, login)
    return {"user": user, "habits": habits}


# --- Habits CRUD PROTECTED ---

@router.post("/habits", response_model=HabitOut, status_code=status.HTTP_201_CREATED)
def create_habit(payload: HabitCreate, habits: HabitRegistry = Depends(get_registry)):
    return habits.create(payload.name, payload.goal, payload.is_public)


# GET all the habits for the logged in user, completions included
@router.get("/habits", response_model=list[HabitOut])
def list_habits(habits: HabitRegistry = Depends(get_registry)):
    return habits.list_owned()


@router.get("/habits/{habit_id}", response_model=HabitOut)
def get_habit(habit_id: int, habits: HabitRegistry = Depends(get_registry)):
    return habits.get(habit_id)


@router.put("/habits/{habit_id}", response_model=HabitOut)
def update_habit(habit_id: int, payload: HabitUpdate, habits: HabitRegistry = Depends(get_registry)):
    return habits.update(habit_id, name=payload.name, goal=payload.goal, is_public=payload.is_public)


@router.delete("/habits/{habit_id}", response_model=MessageResponse)
def delete_habit(habit_id: int, habits: HabitRegistry = Depends(get_registry)):
    habits.delete(habit_id)
    return {"message": "Habit deleted"}


# --- Completions PROTECTED ---

@router.post("/habits/{habit_id}/toggle", response_model=ToggleResponse)
def toggle_completion(habit_id: int, payload: ToggleRequest, ledger: CompletionLedger = Depends(get_ledger)):
    result = ledger.toggle(habit_id, payload.date)
    message = "Completion added" if result.completed else "Completion removed"
    return {"message": message, "completed": result.completed, "date": result.date}


@router.post("/habits/{habit_id}/undo", response_model=UndoResponse)
def undo_last_completion(habit_id: int, ledger: CompletionLedger = Depends(get_ledger)):
    undone = ledger.undo_last(habit_id)
    return {"message": "Last completion undone", "date": undone}
