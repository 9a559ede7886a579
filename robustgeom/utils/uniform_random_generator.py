import numpy as np

# 进程级默认随机数发生器，未注入随机源时使用
_DEFAULT_GENERATOR = np.random.default_rng()


def defaultGenerator():
    """ 返回进程级默认随机数发生器 """
    return _DEFAULT_GENERATOR


def asGenerator(random_generator=None):
    """ 将 None / 种子 / Generator 统一转换为 numpy Generator

    参数
    ----------
    random_generator : None, int or numpy.random.Generator
        None 使用进程级默认发生器，整数作为种子创建新的发生器

    返回
    ----------
    numpy.random.Generator
    """
    if random_generator is None:
        return defaultGenerator()
    if isinstance(random_generator, np.random.Generator):
        return random_generator
    if isinstance(random_generator, (int, np.integer)):
        return np.random.default_rng(int(random_generator))
    raise ValueError(f"无法识别的随机数发生器类型 {type(random_generator)}")


class UniformRandomGenerator:
    """ 均匀随机数产生器 """

    def __init__(self, random_generator=None):
        self.range_min = 0       # 可取最小值
        self.range_max = 100000  # 可取最大值
        self.generator = asGenerator(random_generator)

    def resetGenerator(self, min, max):
        """ 设置随机数发生器的随机数范围

        参数
        ----------
        min : int
            可取最小值
        max : int
            可取最大值（包含）
        """
        self.range_min, self.range_max = min, max

    def generateUniqueRandomSet(self, sample_size, max=None, to_skip=-1):
        """ 产生一个均匀随机且不重复的随机数序列

        参数
        ----------
        sample_size : int
            选取样本大小
        max : int 可选
            可取最大值
        to_skip : int 可选
            不可选取的随机数

        返回
        ----------
        list
            产生的随机序列样本列表
        """
        # 如果输入了最大值，则重设随机数发生器范围
        if max is not None:
            self.resetGenerator(0, max)
        candidates = np.arange(self.range_min, self.range_max + 1)
        if to_skip >= 0:
            candidates = candidates[candidates != to_skip]
        if sample_size > candidates.shape[0]:
            raise ValueError(f"无法从 {candidates.shape[0]} 个数中选取 {sample_size} 个不重复的数")
        return self.generator.choice(candidates, size=sample_size, replace=False).tolist()
