#!/usr/bin/env python3
"""
Monthly Quiz Exam CLI

Student-facing application for the monthly exam program.
Shows the month's routine, opens the daily exam inside its window, runs
the countdown and records exactly one submission per attempt.
"""

import argparse
import calendar
import getpass
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from .config_loader import load_config
from .messages import MESSAGES
from .models import ExamConfig, ExamWindow, ScheduleEntry
from .schedule import build_schedule, entry_for_day, last_day_of_month, window_start_day
from .session import SessionController, SessionLog
from .storage import LocalStore
from .submission import SubmitOutcome, SubmitResult
from .windows import (
    Clock,
    compute_window,
    exam_zone,
    format_countdown,
    is_schedule_published,
    local_now,
    practice_window,
    publish_day,
    utc_now,
)

PRACTICE_SUBJECT_ID = "math"


class ExamRunner:
    """Main CLI application controller."""

    def __init__(self, clock: Clock = utc_now, input_fn=input):
        self.clock = clock
        self.input = input_fn
        self.config: Optional[ExamConfig] = None
        self.store: Optional[LocalStore] = None
        self.session_log: Optional[SessionLog] = None
        self.controller: Optional[SessionController] = None
        self.messages = MESSAGES

    def _msg(self, msg_id: str, **kwargs) -> str:
        template = self.messages.get(msg_id, msg_id)
        return template.format(**kwargs)

    # ===== ROUTINE =====

    def print_schedule(self, schedule: List[ScheduleEntry], year: int, month: int):
        """Print the month's routine, or its publish date if not yet visible."""
        config = self.config
        start_day = window_start_day(year, month, config.window_days)
        month_name = calendar.month_abbr[month]

        if not is_schedule_published(
            self.clock(), year, month, start_day, config.publish_lead_days, config.utc_offset_hours
        ):
            print(self._msg("routine_pending", day=publish_day(start_day, config.publish_lead_days), month=month_name))
            return

        print(self._msg("routine_published", lead=config.publish_lead_days))
        for entry in schedule:
            print(self._msg("routine_item", day=entry.day, month=month_name, subject=entry.subject.name))
        print(self._msg(
            "routine_footer",
            start=start_day,
            end=last_day_of_month(year, month),
            days=config.window_days,
            hour=config.exam_hour_local,
            offset=config.utc_offset_hours
        ))

    def todays_window(self, schedule: List[ScheduleEntry], year: int, month: int, day: int) -> Optional[ExamWindow]:
        entry = entry_for_day(schedule, day)
        if entry is None:
            return None
        config = self.config
        return compute_window(
            year, month, day, entry.subject,
            config.exam_hour_local,
            config.utc_offset_hours,
            config.short_duration_minutes,
            config.standard_duration_minutes
        )

    def print_history(self, key: str):
        entries = self.store.history(key)
        if not entries:
            print(self._msg("history_empty", key=key))
            return
        print(self._msg("history_header", key=key))
        for entry in entries:
            print(self._msg(
                "history_item",
                timestamp=entry.get("timestampUtc"),
                subject=entry.get("subjectName") or entry.get("subjectId"),
                correct=entry.get("correctCount"),
                total=entry.get("totalQuestions"),
                seconds=entry.get("timeTakenSec"),
                paper=entry.get("paperId")
            ))

    # ===== SETUP =====

    def _read_credentials(self, args) -> tuple:
        key = None
        password = None
        if args.key_file:
            try:
                with open(args.key_file, 'rb') as f:
                    key = f.read().strip()
            except OSError as e:
                print(self._msg("key_error", path=args.key_file, error=e))
                raise
        elif args.password:
            password = getpass.getpass(self._msg("ask_enc_pass")).strip()
        return key, password

    def prompt_identity(self) -> tuple:
        """Ask for name and email, pre-filled from the last session."""
        saved_name, saved_email = self.store.get_identity()
        name = self.input(self._msg("ask_name", default=saved_name)).strip() or saved_name
        email = self.input(self._msg("ask_email", default=saved_email)).strip() or saved_email
        self.store.remember_identity(name, email)
        return name, email

    def _print_paper_info(self):
        controller = self.controller
        paper = controller.paper
        if paper is None:
            print(self._msg("no_data", subject=controller.subject.name))
            if controller.load_error is not None:
                print(self._msg("no_data_detail", reason=controller.load_error))
            return
        alias = f" - {paper.alias}" if paper.alias else ""
        print(self._msg(
            "paper_info",
            paper=paper.paper_id,
            count=len(paper.questions),
            minutes=controller.window.duration_minutes,
            alias=alias
        ))

    def _on_auto_submit(self, result: SubmitResult):
        if result.ok:
            print(self._msg("auto_submit"))
        elif result.outcome is SubmitOutcome.FAILED:
            print(self._msg("auto_failed", error=result.error))
            print(self._msg("submit_retry"))
        print(self._msg("press_enter"))

    # ===== COMMANDS =====

    def _question_index(self, token: str) -> Optional[int]:
        count = len(self.controller.paper.questions)
        try:
            n = int(token)
        except ValueError:
            n = 0
        if not 1 <= n <= count:
            print(self._msg("cmd_question_invalid", count=count))
            return None
        return n - 1

    @staticmethod
    def _option_index(token: str) -> Optional[int]:
        token = token.strip().lower()
        if token.isdigit():
            return int(token) - 1
        if len(token) == 1 and 'a' <= token <= 'z':
            return ord(token) - ord('a')
        return None

    def cmd_show(self, arg: Optional[str] = None):
        paper = self.controller.paper
        if paper is None:
            print(self._msg("submit_no_paper"))
            return
        if arg:
            idx = self._question_index(arg)
            if idx is None:
                return
            indices = [idx]
        else:
            indices = range(len(paper.questions))

        answers = self.controller.state.snapshot_answers()
        for i in indices:
            question = paper.questions[i]
            print(f"\n{i + 1}. {question.text}")
            if question.image:
                print(f"   [image: {question.image}]")
            for oi, option in enumerate(question.options):
                marker = "*" if answers.get(question.id) == oi else " "
                image = f" [image: {option.image}]" if option.image else ""
                print(f"  {marker} {chr(ord('a') + oi)}) {option.text}{image}")
        print()

    def cmd_answer(self, args: List[str]):
        if self.controller.paper is None:
            print(self._msg("submit_no_paper"))
            return
        if len(args) != 2:
            print(self._msg("cmd_unknown", cmd="answer " + " ".join(args)))
            return
        idx = self._question_index(args[0])
        if idx is None:
            return
        opt = self._option_index(args[1])
        question = self.controller.paper.questions[idx]
        if opt is None or not 0 <= opt < len(question.options):
            print(self._msg("cmd_option_invalid", opt=args[1]))
            return
        if self.controller.answer(question.id, opt):
            print(self._msg("cmd_answer_saved", n=idx + 1, opt=chr(ord('a') + opt)))
        else:
            print(self._msg("cmd_answer_frozen"))

    def cmd_clear(self, arg: str):
        if self.controller.paper is None:
            print(self._msg("submit_no_paper"))
            return
        idx = self._question_index(arg)
        if idx is None:
            return
        question = self.controller.paper.questions[idx]
        if self.controller.clear_answer(question.id):
            print(self._msg("cmd_answer_cleared", n=idx + 1))
        elif not self.controller.state.accepts_answers:
            print(self._msg("cmd_answer_frozen"))

    def cmd_status(self):
        paper = self.controller.paper
        total = len(paper.questions) if paper else 0
        answered = len(self.controller.state.snapshot_answers())
        print(self._msg("cmd_status", answered=answered, total=total))

    def cmd_time(self):
        print(self._msg("cmd_time", countdown=format_countdown(self.controller.remaining())))

    def cmd_submit(self):
        try:
            confirm = self.input(self._msg("cmd_submit_confirm")).strip().lower()
        except (KeyboardInterrupt, EOFError):
            print()
            confirm = ""
        if confirm != 'y':
            print(self._msg("cmd_submit_cancel"))
            return
        self.report_result(self.controller.submit())

    def report_result(self, result: SubmitResult):
        if result.ok:
            totals = result.record["totals"]
            print(self._msg(
                "submit_ok",
                correct=totals["correct"],
                total=totals["total"],
                seconds=result.record["resultSheet"]["elapsedSeconds"]
            ))
        elif result.outcome is SubmitOutcome.IN_FLIGHT:
            print(self._msg("submit_in_flight"))
        elif result.outcome is SubmitOutcome.ALREADY_SUBMITTED:
            print(self._msg("submit_done"))
        elif result.outcome is SubmitOutcome.NO_PAPER:
            print(self._msg("submit_no_paper"))
        elif result.outcome is SubmitOutcome.FAILED:
            print(self._msg("submit_failed", error=result.error))
            print(self._msg("submit_retry"))

    def cmd_exit(self) -> bool:
        try:
            confirm = self.input(self._msg("cmd_exit_confirm")).strip().lower()
        except (KeyboardInterrupt, EOFError):
            print()
            return False
        if confirm != 'y':
            return False
        print(self._msg("cmd_exit_message"))
        return True

    def command_loop(self):
        """Main interactive command loop."""
        print("\n" + self._msg("header"))
        print(self._msg("cmd_help_text"))
        print(self._msg("header") + "\n")

        while not self.controller.is_finished:
            try:
                line = self.input("> ").strip()
            except (KeyboardInterrupt, EOFError):
                print()
                if self.cmd_exit():
                    break
                continue

            if self.controller.is_finished:
                break
            if not line:
                continue

            parts = line.split()
            cmd, args = parts[0].lower(), parts[1:]

            if cmd == "help":
                print(self._msg("cmd_help_text"))
            elif cmd == "show":
                self.cmd_show(args[0] if args else None)
            elif cmd == "answer":
                self.cmd_answer(args)
            elif cmd == "clear":
                self.cmd_clear(args[0] if args else "")
            elif cmd == "status":
                self.cmd_status()
            elif cmd == "time":
                self.cmd_time()
            elif cmd == "submit":
                self.cmd_submit()
            elif cmd == "exit":
                if self.cmd_exit():
                    break
            else:
                print(self._msg("cmd_unknown", cmd=cmd))

    # ===== ENTRY =====

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main application entry point."""
        parser = argparse.ArgumentParser(
            description="Monthly Quiz Exam Runner",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        parser.add_argument(
            "--config",
            help="Path to exam configuration file (default: config.json in executable directory)"
        )
        credentials = parser.add_mutually_exclusive_group()
        credentials.add_argument("--key-file", help="Key file for encrypted paper sources")
        credentials.add_argument("--password", action="store_true", help="Prompt for the paper password")
        parser.add_argument("--schedule", action="store_true", help="Print this month's routine and exit")
        parser.add_argument("--history", metavar="KEY", help="Print stored results for an email or name and exit")
        parser.add_argument("--test", action="store_true", help="Start a practice exam immediately")

        args = parser.parse_args(argv)

        try:
            config_path = Path(args.config) if args.config else None
            self.config = load_config(config_path)
        except ValueError as e:
            print(self._msg("config_error", error=e))
            return 1

        data_dir = Path(self.config.data_dir)
        self.store = LocalStore(data_dir / "store.json")
        self.session_log = SessionLog(data_dir / "session.log")

        if args.history:
            self.print_history(args.history)
            return 0

        print(self._msg("header"))
        print(self._msg("title"))
        print(self._msg("header"))

        now = self.clock()
        local = local_now(self.clock, self.config.utc_offset_hours)
        year, month, day = local.year, local.month, local.day
        schedule = build_schedule(self.config.subjects, year, month, self.config.window_days)
        self.print_schedule(schedule, year, month)

        if args.schedule:
            return 0

        if args.test:
            subject = self.config.get_subject(PRACTICE_SUBJECT_ID) or self.config.subjects[0]
            window = practice_window(
                subject, now, self.config.short_duration_minutes, self.config.standard_duration_minutes
            )
            print(self._msg("practice_mode", subject=subject.name))
        else:
            window = self.todays_window(schedule, year, month, day)
            if window is None:
                print(self._msg("next_window", start=window_start_day(year, month, self.config.window_days)))
                return 0
            print(self._msg("today_scheduled", day=day, subject=window.subject.name))
            if now < window.start:
                opens = window.start.astimezone(exam_zone(self.config.utc_offset_hours))
                print(self._msg("today_starts", time=opens.strftime("%H:%M"), countdown=format_countdown(window.start - now)))
                return 0
            if now >= window.end:
                print(self._msg("today_over"))
                return 0

        try:
            key, password = self._read_credentials(args)
        except OSError:
            return 1
        except (KeyboardInterrupt, EOFError):
            print()
            return 1

        try:
            name, email = self.prompt_identity()
        except (KeyboardInterrupt, EOFError):
            print()
            return 1

        self.controller = SessionController(
            self.config,
            window,
            date(year, month, day),
            self.store,
            student_name=name,
            student_email=email,
            clock=self.clock,
            log=self.session_log,
            key=key,
            password=password,
            on_auto_submit=self._on_auto_submit
        )
        self.controller.open()
        self._print_paper_info()

        try:
            self.command_loop()
        finally:
            self.controller.close()

        return 0


def main():
    """Entry point for the exam runner."""
    runner = ExamRunner()
    sys.exit(runner.run())


if __name__ == "__main__":
    main()
