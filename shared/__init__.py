"""Provider-side code shared by the engine, the API and the CLI"""
