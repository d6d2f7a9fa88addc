from run_calorie_analysis.visualization.data_visualizer import DataVisualizer

__all__ = ["DataVisualizer"]
