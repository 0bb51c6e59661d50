from ladderboard.api import AccountsController, GameSessionController
from ladderboard.home import routes as routes_home

ROUTES = [
    *routes_home,
    AccountsController,
    GameSessionController,
]
