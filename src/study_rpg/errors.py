"""Error types raised by the ledger, the reward economy and their collaborators."""


class StudyRPGError(Exception):
    """Base class for every failure the package raises on purpose."""


class NotFound(StudyRPGError):
    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class InsufficientBalance(StudyRPGError):
    def __init__(self, points: int, cost: int):
        super().__init__(f"insufficient points: have {points}, need {cost}")
        self.points = points
        self.cost = cost


class InvalidTransition(StudyRPGError):
    def __init__(self, claim_id: str, status: str):
        super().__init__(f"claim {claim_id} is already {status}")
        self.claim_id = claim_id
        self.status = status


class PersistenceError(StudyRPGError):
    pass


class GenerationUnavailable(StudyRPGError):
    pass


class InvalidInput(StudyRPGError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class InvalidCredentials(StudyRPGError):
    pass
