"""
Quick demo script to run the Smart Advisor API locally.

This script starts a local server and shows how to make requests to the
recommendation endpoints.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Smart Advisor Backend Demo")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:     GET   http://localhost:8000/health")
    print("   - Integrations:     GET   http://localhost:8000/health/integrations")
    print("   - Questionnaire:    POST  http://localhost:8000/questions")
    print("   - Recommendations:  POST  http://localhost:8000/recommendations")
    print("   - Retry:            POST  http://localhost:8000/recommendations/retry")
    print("   - History:          GET   http://localhost:8000/recommendations")
    print("   - API Docs:               http://localhost:8000/docs")
    print()
    print("🔐 Authentication:")
    print("   All endpoints (except /health*) require:")
    print("   Authorization: Bearer <supabase access token>")
    print()
    print("📝 Test with curl:")
    print('   curl -X POST "http://localhost:8000/recommendations" \\')
    print('     -H "Authorization: Bearer $TOKEN" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"answers": [{"answer_text": "slow-burn sci-fi"}], '
          '"content_type": "both", "user_age": 27}\'')
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "smart_advisor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
