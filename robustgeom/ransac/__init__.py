from .ransac import InliersData, RobustEstimator
