from .errors      import TransactionError, IndicesNotFound, KeyNotFound, InvalidKeyBytes, InvalidFrameData, NotInitialized, InitializationFailed, HomePageUnavailable
from .interpolate import js_round, solve, interpolate
from .rotation    import convert_rotation_to_matrix
from .hexfloat    import float_to_hex, hex_to_float
from .cubic       import Cubic
from .config      import TransactionSettings
from .document    import HomePageDocument
from .extractor   import IndexSet, resolve_indices, get_key, get_key_bytes, get_frames, get_2d_array, parse_path_data
from .animation   import animate, get_animation_key
from .signature   import generate_transaction_id, encode_transaction_id, decode_transaction_id, current_time_now
from .fetch       import HttpxFetcher, CurlCffiFetcher, build_fetcher, load_home_page
from .session     import ClientTransaction, SessionContext, SessionState, initialize_session
from .resilience  import retry_with_backoff, initialize_with_retry
