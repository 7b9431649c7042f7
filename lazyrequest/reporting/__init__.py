from .reporter import ConsoleOutput, ResultReport, ResultReporter, ResultSummary, summarize

__all__ = ["ConsoleOutput", "ResultReport", "ResultReporter", "ResultSummary", "summarize"]
