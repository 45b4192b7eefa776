class ExitCodes:
    SUCCESS = 0
    ERROR = 1
    ISSUES_DETECTED = 2
