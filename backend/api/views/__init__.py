from api.views.admin_handlers import (
    clear_dev_data as clear_dev_data,
)
from api.views.admin_handlers import (
    purge_daily as purge_daily,
)
from api.views.admin_handlers import (
    rebuild_alltime_index as rebuild_alltime_index,
)
from api.views.challenge_handlers import daily_seed as daily_seed
from api.views.leaderboard_handlers import (
    get_leaderboard as get_leaderboard,
)
from api.views.leaderboard_handlers import (
    submit_score as submit_score,
)
