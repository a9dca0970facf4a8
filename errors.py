class AgnesiError(Exception):
    """ Base class for all expression-engine errors"""
    pass

class EvaluationError(AgnesiError):
    """ Raised when an error node is reached while evaluating or differentiating a tree"""
    def __init__(self, position: int):
        super().__init__(
            f"Error node encountered at {position}; must have received bad input"
        )
        self.position = position

class InvariantViolation(AgnesiError):
    """ Raised when a node breaks the arity rules or has an unknown kind; a programming defect"""
