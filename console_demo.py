"""
Offline console demo: plays booking scenarios against an in-process engine.

Uses the real schedule service, slot ledger, contract lifecycle and
notification center. No database, no network calls. Designed for live
demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario race
    python console_demo.py --scenario windows
"""

import argparse
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Optional

from booking_engine.config import settings
from booking_engine.engine import BookingEngine, CallResult
from booking_engine.scheduling.schedule import group_slots_by_day
from booking_engine.scheduling.time_window import check_time_window
from booking_engine.schemas.auth_schema import AuthContext, UserRole
from booking_engine.schemas.availability_schema import TimeWindow

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def next_weekday(day_of_week: int, start: Optional[date] = None) -> date:
    """First date strictly after ``start`` that falls on ``day_of_week``."""
    start = start or date.today()
    days_ahead = (day_of_week - start.weekday()) % 7 or 7
    return start + timedelta(days=days_ahead)


class ConsoleSession:
    """Plays one scenario against a fresh engine and narrates the results."""

    def __init__(self) -> None:
        self.engine = BookingEngine()
        self.artist = AuthContext(user_id="artist-luna", role=UserRole.ARTIST)
        self.venue = AuthContext(user_id="venue-blue-note", role=UserRole.VENUE)
        self.rival = AuthContext(user_id="venue-basement", role=UserRole.VENUE)

    def actor_say(self, who: AuthContext, text: str) -> None:
        color = GREEN if who.is_artist else BLUE
        print(f"{color}{BOLD}[{who.user_id}]{RESET} {color}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def report(self, result: CallResult, success: str) -> None:
        if result.ok:
            self.system_log(f"{GREEN}{success}{RESET}")
        else:
            err = result.error
            self.system_log(f"{RED}{err['code']} ({err['status']}): {err['message']}{RESET}")

    def banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  GIG BOOKING ENGINE - {title}{RESET}")
        print(f"{BOLD}  Service: {settings.service_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _setup_saturday_slot(self):
        e = self.engine
        self.actor_say(self.artist, "Creating my schedule (min gig 120 min).")
        e.schedules.create_schedule(self.artist, self.artist.user_id, min_gig_duration=120)
        self.actor_say(self.artist, "Adding Saturday 22:00 - 02:00 (+1 day).")
        return e.schedules.add_slot(self.artist, TimeWindow(
            day_of_week=5, start_time="22:00", end_time="02:00", crosses_midnight=True,
        ))

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def scenario_booking(self) -> None:
        e = self.engine
        slot = self._setup_saturday_slot()

        free = e.queries.get_free_slots(self.artist.user_id)
        self.actor_say(self.venue, f"Browsing free slots: {[s.id for s in free]}")

        proposal = e.call(
            e.contracts.create_contract, self.venue,
            artist_id=self.artist.user_id, venue_id=self.venue.user_id,
            event_date=next_weekday(5), final_price="1500.00",
            tags=["Transport", "Meals"], slot_id=slot.id,
        )
        self.report(proposal, f"Proposal {proposal.value.id if proposal.ok else ''} is PENDING")
        contract = proposal.value

        self.actor_say(self.artist, "Accepting the proposal.")
        self.report(e.call(e.contracts.update_status, self.artist, contract.id, "ACCEPTED"),
                    "Contract ACCEPTED, slot bound")
        self.system_log(f"Free slots now: {[s.id for s in e.queries.get_free_slots(self.artist.user_id)]}")

        self.actor_say(self.artist, "Trying to remove the booked slot.")
        self.report(e.call(e.schedules.remove_slot, self.artist, slot.id), "Slot removed")

        self.actor_say(self.venue, "Marking the gig as completed.")
        self.report(e.call(e.contracts.update_status, self.venue, contract.id, "COMPLETED"),
                    "Contract COMPLETED, slot released")

        self.actor_say(self.artist, "Removing the slot again.")
        self.report(e.call(e.schedules.remove_slot, self.artist, slot.id), "Slot removed")

        unread = e.notifications.unread_count(self.artist.user_id)
        self.system_log(f"Artist has {unread} unread notification(s)")

    def scenario_race(self) -> None:
        e = self.engine
        slot = self._setup_saturday_slot()
        when = next_weekday(5)

        ids = []
        for venue in (self.venue, self.rival):
            contract = e.contracts.create_contract(
                venue, artist_id=self.artist.user_id, venue_id=venue.user_id,
                event_date=when, final_price=900, slot_id=slot.id,
            )
            self.actor_say(venue, f"Proposed {contract.id} for {when.isoformat()}.")
            ids.append(contract.id)

        self.actor_say(self.artist, "Accepting both proposals at the same time.")
        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(
                lambda cid: e.call(e.contracts.update_status, self.artist, cid, "ACCEPTED"), ids,
            ))
        for cid, result in zip(ids, results):
            self.report(result, f"{cid} ACCEPTED")
            status = e.contracts.get_contract(self.artist, cid).status.value
            self.system_log(f"{cid} is {status}")

    def scenario_windows(self) -> None:
        samples = [
            TimeWindow(day_of_week=4, start_time="21:00", end_time="21:10"),
            TimeWindow(day_of_week=4, start_time="21:00", end_time="21:15"),
            TimeWindow(day_of_week=5, start_time="23:00", end_time="02:00", crosses_midnight=True),
            TimeWindow(day_of_week=5, start_time="23:00", end_time="02:00"),
            TimeWindow(day_of_week=6, start_time="23:55", end_time="00:05", crosses_midnight=True),
        ]
        for window in samples:
            ok, message = check_time_window(window)
            label = (
                f"{DAY_NAMES[window.day_of_week]} {window.start_time}-{window.end_time}"
                f"{' (+1d)' if window.crosses_midnight else ''}"
            )
            color = GREEN if ok else YELLOW
            print(f"  {color}{'valid  ' if ok else 'invalid'}{RESET} {label} {DIM}{message}{RESET}")

    SCENARIOS = {
        "booking": scenario_booking,
        "race": scenario_race,
        "windows": scenario_windows,
    }

    def run_scenario(self, scenario: str) -> None:
        play = self.SCENARIOS.get(scenario)
        if play is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self.banner(f"Scenario: {scenario}")
        play(self)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        schedule = self.engine.schedule_store.snapshot(self.artist.user_id)
        if schedule is not None:
            for day, slots in group_slots_by_day(schedule.slots).items():
                booked = sum(1 for s in slots if s.is_booked)
                print(f"{DIM}  {DAY_NAMES[day]}: {len(slots)} slot(s), {booked} booked{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking engine demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default="booking",
        help="Which pre-scripted scenario to play",
    )
    args = parser.parse_args()
    ConsoleSession().run_scenario(args.scenario)


if __name__ == "__main__":
    main()
