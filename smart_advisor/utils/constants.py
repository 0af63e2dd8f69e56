"""
Fixed values shared by the recommendation pipeline.

Placeholder art and ratings are substituted when a catalog lookup fails so
the UI never renders a missing poster or rating.
"""

RECOMMENDATIONS_TABLE = "recommendations"

PLACEHOLDER_MOVIE_POSTER_URL = (
    "https://images.unsplash.com/photo-1489599731893-01139d4e6b5b?w=300&h=450&fit=crop"
)
PLACEHOLDER_BOOK_COVER_URL = (
    "https://images.unsplash.com/photo-1481627834876-b7833e8f5570?w=300&h=450&fit=crop"
)

PLACEHOLDER_MOVIE_RATING = 7.5
PLACEHOLDER_BOOK_RATING = 4.2

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
GOOGLE_BOOKS_API_BASE_URL = "https://www.googleapis.com/books/v1"

# Stored rows keep genres as a single ", "-joined string
GENRE_SEPARATOR = ", "

MIN_USER_AGE = 13
MAX_USER_AGE = 120
MIN_QUESTION_COUNT = 3
MAX_QUESTION_COUNT = 15
DEFAULT_QUESTION_COUNT = 5
