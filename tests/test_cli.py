from datetime import datetime

from hilal import cli
from hilal.bus import DayChanged, HolidayEnter, PrayerTime
from hilal.hijri import HijriDate
from hilal.holidays import HolidayWindow
from hilal.prayer import Prayer


def test_today(capsys):
    assert cli.main(["today"]) == 0
    out = capsys.readouterr().out
    assert "2024-01-01 06:00:00" in out
    assert "19 Jumada al-Thani 1445 AH, the nineteenth of Jumada al-Thani" in out
    assert "Ramadan in seventy days." in out
    assert "=== PRAYER SCHEDULE 2024-01-01 ===" in out


def test_today_later(capsys):
    assert cli.main(["today", "--day", "1", "--hour", "13"]) == 0
    out = capsys.readouterr().out
    assert "2024-01-02 13:00:00" in out
    assert "Dhuhr   : 12:05 [COMPLETED]" in out


def test_ahead(capsys):
    assert cli.main(["ahead", "-n", "3"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4
    assert "19/6/1445" in lines[1]
    assert "21/6/1445" in lines[3]


def test_simulate(capsys):
    assert cli.main(["simulate", "-n", "1", "--frames-per-day", "96"]) == 0
    out = capsys.readouterr().out
    for p in Prayer:
        assert f"{p.label} at" in out
    assert "day 1: 20 Jumada al-Thani 1445 AH" in out
    assert "hour" not in out


def test_describe():
    window = HolidayWindow(name="Ashura", month=1, day=10)
    assert cli.describe(HolidayEnter(window=window)) == "holiday begins: Ashura"
    day = DayChanged(date=HijriDate(year=1445, month=1, day=1), day_index=4)
    assert cli.describe(day) == "day 4: 1 Muharram 1445 AH"
    asr = PrayerTime(prayer=Prayer.ASR, at=datetime(2024, 1, 1, 15, 36))
    assert cli.describe(asr) == "Asr at 15:36"
