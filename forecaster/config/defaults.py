"""Default seed cities for an empty catalog."""

from forecaster.config.schema import CityConfig

DEFAULT_CITIES: list[CityConfig] = [
    CityConfig(name="Warsaw", lat=52.22977, lon=21.01178),
    CityConfig(name="Krakow", lat=50.06143, lon=19.93658),
    CityConfig(name="Gdansk", lat=54.35205, lon=18.64637),
    CityConfig(name="Wroclaw", lat=51.10789, lon=17.03854),
    CityConfig(name="Poznan", lat=52.40692, lon=16.92993),
]
