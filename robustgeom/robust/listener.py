class RobustEstimatorListener:
    """ 鲁棒估计过程的通知接口，所有回调在估计线程中同步调用 """

    def onEstimateStart(self, estimator):
        pass

    def onEstimateEnd(self, estimator):
        pass

    def onEstimateNextIteration(self, estimator, iteration):
        pass

    def onEstimateProgressChange(self, estimator, progress):
        pass


class _ListenerBridge:
    """ 将迭代过程的通知转发给用户监听器，并附带发出通知的估计器 """

    def __init__(self, robust_estimator, listener):
        self.robust_estimator = robust_estimator
        self.listener = listener

    def onEstimateStart(self):
        self.listener.onEstimateStart(self.robust_estimator)

    def onEstimateEnd(self):
        self.listener.onEstimateEnd(self.robust_estimator)

    def onEstimateNextIteration(self, iteration):
        self.listener.onEstimateNextIteration(self.robust_estimator, iteration)

    def onEstimateProgressChange(self, progress):
        self.listener.onEstimateProgressChange(self.robust_estimator, progress)
