from pydantic import BaseModel


class StatsOut(BaseModel):
    total_items: int
    available_items: int
    pending_rentals: int
    active_rentals: int
    completed_rentals: int
