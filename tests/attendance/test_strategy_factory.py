from datetime import date, datetime, time

from src.workhub.workhub.attendance.factory import AttendanceStrategyFactory
from src.workhub.workhub.attendance.model import AttendanceRecord
from src.workhub.workhub.attendance.strategies.half_day_strategy import HalfDayStrategy
from src.workhub.workhub.attendance.strategies.late_strategy import LateStrategy
from src.workhub.workhub.attendance.strategies.present_strategy import PresentStrategy
from src.workhub.workhub.core.enums import AttendanceStatus
from src.workhub.workhub.shifts.model import Shift

SHIFT = Shift(
    shift_id=1,
    organization_id=1,
    shift_name="Morning",
    start_time=time(8, 0),
    end_time=time(17, 0),
    break_minutes=60,
    grace_minutes=5,
)
TODAY = date(2025, 1, 1)


def _record(status, work_hours):
    return AttendanceRecord(
        attendance_id=1,
        user_id=1,
        work_date=TODAY,
        status=status,
        clock_in=datetime(2025, 1, 1, 8, 0),
        clock_out=datetime(2025, 1, 1, 12, 0),
        work_hours=work_hours,
    )


def test_factory_clock_in_on_time_within_grace():
    strategy = AttendanceStrategyFactory().for_clock_in(now=datetime(2025, 1, 1, 8, 5, 0), today=TODAY, shift=SHIFT)

    assert isinstance(strategy, PresentStrategy)


def test_factory_clock_in_late_after_grace():
    now = datetime(2025, 1, 1, 8, 6, 0)
    strategy = AttendanceStrategyFactory().for_clock_in(now=now, today=TODAY, shift=SHIFT)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide_clock_in(now=now, today=TODAY, shift=SHIFT)
    assert decision.status == AttendanceStatus.LATE
    assert decision.note == "Late by 6 min"


def test_factory_without_shift_is_always_present():
    strategy = AttendanceStrategyFactory().for_clock_in(now=datetime(2025, 1, 1, 23, 0), today=TODAY, shift=None)

    assert isinstance(strategy, PresentStrategy)


def test_factory_clock_out_short_day_is_half_day():
    factory = AttendanceStrategyFactory()

    assert isinstance(factory.for_clock_out(record=_record(AttendanceStatus.PRESENT, 3.5), shift=SHIFT), HalfDayStrategy)
    assert isinstance(factory.for_clock_out(record=_record(AttendanceStatus.PRESENT, 4.0), shift=SHIFT), PresentStrategy)
    assert isinstance(factory.for_clock_out(record=_record(AttendanceStatus.LATE, 1.0), shift=SHIFT), PresentStrategy)
