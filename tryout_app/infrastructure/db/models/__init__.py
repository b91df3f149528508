from .school_model import SchoolModel
from .user_model import ProfileModel
from .tryout_model import TryoutModel
from .question_model import QuestionModel

__all__ = ["SchoolModel", "ProfileModel", "TryoutModel", "QuestionModel"]
