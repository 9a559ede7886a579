import argparse
import logging
from time import time

import numpy as np

from robustgeom import HomographyRobustEstimator, RobustEstimatorMethod
from utils_helper import (getTransferError, makeHomographyPairs,
                          makeQualityScores, randomHomography)

logger = logging.getLogger(__name__)


def compareMethods(point_number=500, outlier_ratio=0.3, threshold=1.0, noise_std=0.5, seed=0):
    """ 在同一组合成单应数据上运行全部鲁棒估计方法

    返回
    --------
    list(dict)
        每种方法的内点率、迭代次数、转移误差和耗时
    """
    rng = np.random.default_rng(seed)
    gt_H = randomHomography(rng)
    src_pts, dst_pts, outliers = makeHomographyPairs(rng, gt_H,
                                                     point_number=point_number,
                                                     outlier_ratio=outlier_ratio,
                                                     noise_std=noise_std)
    quality_scores = makeQualityScores(rng, outliers)

    results = []
    for method in RobustEstimatorMethod:
        t = time()
        robust_estimator = HomographyRobustEstimator(src_pts, dst_pts,
                                                     method=method,
                                                     quality_scores=quality_scores,
                                                     random_generator=seed)
        if not method.usesMedian:
            robust_estimator.setThreshold(threshold)
        H = robust_estimator.estimate().descriptor
        elapsed = time() - t

        inliers_data = robust_estimator.getInliersData()
        results.append({
            'method': method.name,
            'inlier_ratio': inliers_data.inlier_number / point_number,
            'iterations': robust_estimator.getStatistics().iteration_number,
            'error': getTransferError(src_pts[~outliers], dst_pts[~outliers], H),
            'elapsed': elapsed,
        })
        logger.info("%s: inlier ratio = %.3f, iterations = %d, error = %.4f, elapsed time = %.4f",
                    method.name, results[-1]['inlier_ratio'], results[-1]['iterations'],
                    results[-1]['error'], elapsed)
    return results


def drawComparison(results):
    import matplotlib.pyplot as plt

    names = [row['method'] for row in results]
    fig, axes = plt.subplots(1, 3, figsize=(12, 4))
    for ax, key in zip(axes, ('iterations', 'error', 'elapsed')):
        ax.bar(names, [row[key] for row in results])
        ax.set_title(key)
    fig.tight_layout()
    plt.show()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compare robust estimation methods on a synthetic homography")
    parser.add_argument('--points', type=int, default=500)
    parser.add_argument('--outliers', type=float, default=0.3)
    parser.add_argument('--threshold', type=float, default=1.0)
    parser.add_argument('--noise', type=float, default=0.5)
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--plot', action='store_true')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    results = compareMethods(point_number=args.points,
                             outlier_ratio=args.outliers,
                             threshold=args.threshold,
                             noise_std=args.noise,
                             seed=args.seed)
    if args.plot:
        drawComparison(results)
    return results


if __name__ == '__main__':
    main()
