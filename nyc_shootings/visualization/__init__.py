from nyc_shootings.visualization.charts import (
    plot_incidents_by_borough,
    plot_incidents_by_month,
    plot_incidents_by_victim_age,
    plot_month_model,
    plot_month_year_model,
    save_figure,
)

__all__ = [
    "plot_incidents_by_month",
    "plot_incidents_by_victim_age",
    "plot_incidents_by_borough",
    "plot_month_model",
    "plot_month_year_model",
    "save_figure",
]
