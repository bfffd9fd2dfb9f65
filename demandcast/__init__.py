"""DemandCast: retail demand forecasting models and API."""
