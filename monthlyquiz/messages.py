"""User-facing message templates for the exam runner."""

MESSAGES = {
    "header": "=" * 60,
    "title": "Monthly Quiz Exam",
    "config_default": "Configuration loaded from {src}",
    "config_error": "Error: {error}",
    "key_error": "Error: could not read key file '{path}': {error}",
    "ask_enc_pass": "Enter password for encrypted papers: ",
    "ask_name": "Name [{default}]: ",
    "ask_email": "Email [{default}]: ",

    "routine_published": "Published routine (visible {lead} days before exams)",
    "routine_item": "  {day:>2} {month}  {subject}",
    "routine_footer": "Exam window: {start} -> {end} (last {days} days of month). Exams start daily at {hour:02d}:00 (UTC{offset:+d}).",
    "routine_pending": "Routine will be published on {day} {month}. Come back then.",
    "today_scheduled": "Today ({day}) scheduled: {subject}.",
    "today_starts": "The exam opens at {time} (in {countdown}).",
    "today_over": "Today's exam window has closed.",
    "next_window": "Next exam window starts on day {start}.",

    "practice_mode": "Practice mode: {subject} exam starts now.",
    "paper_info": "Paper: {paper} - {count} MCQ - {minutes} min{alias}",
    "no_data": "No question data found for \"{subject}\". The countdown still runs.",
    "no_data_detail": "  Reason: {reason}",

    "cmd_help_text": (
        "Commands:\n"
        "  show [n]            Show all questions or question n\n"
        "  answer <n> <opt>    Choose option <opt> (1, 2, ... or a, b, ...) for question n\n"
        "  clear <n>           Remove your answer to question n\n"
        "  status              Show how many questions are answered\n"
        "  time                Show remaining time\n"
        "  submit              Submit your answers\n"
        "  exit                Leave without submitting\n"
        "  help                Show this help"
    ),
    "cmd_unknown": "Unknown command '{cmd}'. Type 'help' for the list of commands.",
    "cmd_question_invalid": "Invalid question number. Choose 1-{count}.",
    "cmd_option_invalid": "Invalid option '{opt}'.",
    "cmd_answer_saved": "Question {n}: option {opt} selected.",
    "cmd_answer_frozen": "Answers can no longer be changed.",
    "cmd_answer_cleared": "Question {n}: answer removed.",
    "cmd_status": "Answered {answered} of {total} questions.",
    "cmd_time": "Time remaining: {countdown}",
    "cmd_submit_confirm": "Submit your answers now? (y/N): ",
    "cmd_submit_cancel": "Submission cancelled.",
    "cmd_exit_confirm": "Leave without submitting? Your answers will be lost. (y/N): ",
    "cmd_exit_message": "Session closed without submission.",

    "submit_ok": "Your answers have been saved. Score: {correct}/{total} ({seconds}s).",
    "submit_in_flight": "A submission is already in progress.",
    "submit_done": "Your answers were already submitted.",
    "submit_failed": "Submission failed: {error}",
    "submit_retry": "Type 'submit' to try again.",
    "submit_no_paper": "Nothing to submit: no paper was loaded for this exam.",
    "auto_submit": "\nTime is up. Your answers were submitted automatically.",
    "auto_failed": "\nTime is up, but the automatic submission failed: {error}",
    "press_enter": "Press Enter to continue.",

    "history_header": "Results for {key}:",
    "history_item": "  {timestamp}  {subject:<30} {correct}/{total}  ({seconds}s)  paper {paper}",
    "history_empty": "No stored results for {key}.",
}
