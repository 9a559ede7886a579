from .score import (LMedSScoringFunction, MSACScoringFunction,
                    PROMedSScoringFunction, RansacScoringFunction, Score)
from .uniform_random_generator import (UniformRandomGenerator, asGenerator,
                                       defaultGenerator)
