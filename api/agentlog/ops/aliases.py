"""Static operation identifier tables.

CANONICAL_OPERATIONS holds the authoritative camelCase operation ids.
OPERATION_ALIASES maps historical snake_case and legacy names to them.
"""

CANONICAL_OPERATIONS: frozenset[str] = frozenset(
    {
        # Logging and retrieval
        "logDataOrEvent",
        "retrieveLogsOrDataEntries",
        # Insights
        "getPersonalInsights",
        "generateJournalInsight",
        "ragMemoryConsolidation",
        # Practices
        "trustCheckIn",
        "extractMediaWisdom",
        "somaticHealingSession",
        "synthesizeWisdom",
        "getDailySynthesis",
        "recognizePatterns",
        "standingTallPractice",
        "clarifyValues",
        "unleashCreativity",
        "cultivateAbundance",
        "navigateTransitions",
        "healAncestry",
        "interpretDream",
        "optimizeEnergy",
        # System
        "systemHealthCheck",
        "generateDiscoveryInquiry",
        "submitFeedback",
        "manageCommitment",
        "listActiveCommitments",
        "trackMoodAndEmotions",
        "setPersonalGoals",
        "designHabits",
        # Direct store access
        "queryD1Database",
        "storeInKV",
        "upsertVectors",
    }
)

OPERATION_ALIASES: dict[str, str] = {
    # Logging
    "log_data_or_event": "logDataOrEvent",
    "retrieve_logs_or_data_entries": "retrieveLogsOrDataEntries",
    "retrieve_recent_session_logs": "retrieveLogsOrDataEntries",
    "logEntry": "logDataOrEvent",
    "writeLog": "logDataOrEvent",
    "kvWrite": "logDataOrEvent",
    "d1Insert": "logDataOrEvent",
    "promote": "logDataOrEvent",
    "arkEnhancedLog": "logDataOrEvent",
    "arkAutonomousLog": "logDataOrEvent",
    "advanced_logging_operations": "logDataOrEvent",
    "retrieveLogs": "retrieveLogsOrDataEntries",
    "getLatestLogs": "retrieveLogsOrDataEntries",
    "retrieve": "retrieveLogsOrDataEntries",
    "retrieveLatest": "retrieveLogsOrDataEntries",
    "retrievalMeta": "retrieveLogsOrDataEntries",
    "retrieveRecentSessionLogs": "retrieveLogsOrDataEntries",
    "sessionInit": "retrieveLogsOrDataEntries",
    "arkEnhancedRetrieve": "retrieveLogsOrDataEntries",
    "exportConversation": "retrieveLogsOrDataEntries",
    "exportConversationData": "retrieveLogsOrDataEntries",
    "getKVStoredData": "retrieveLogsOrDataEntries",
    "listR2Objects": "retrieveLogsOrDataEntries",
    "searchR2": "retrieveLogsOrDataEntries",
    # Search and insights
    "search_logs": "getPersonalInsights",
    "rag_search": "getPersonalInsights",
    "search_r2_storage": "getPersonalInsights",
    "searchLogs": "getPersonalInsights",
    "ragSearch": "getPersonalInsights",
    "searchR2Storage": "getPersonalInsights",
    "retrieve_r2_stored_content": "getPersonalInsights",
    "get_r2_stored_content": "getPersonalInsights",
    "personal_insights": "getPersonalInsights",
    "getInsights": "getPersonalInsights",
    "getAnalytics": "getPersonalInsights",
    "getConversationAnalytics": "getPersonalInsights",
    "getWisdomAndInsights": "getPersonalInsights",
    "searchResonance": "getPersonalInsights",
    "arkEnhancedMemories": "getPersonalInsights",
    "arkEnhancedVector": "getPersonalInsights",
    "arkAdvancedFilter": "getPersonalInsights",
    # Memory consolidation
    "rag_memory_consolidation": "ragMemoryConsolidation",
    "memoryRetrieval": "ragMemoryConsolidation",
    "arkEnhancedResonance": "ragMemoryConsolidation",
    # Practices
    "trust_check_in": "trustCheckIn",
    "extract_media_wisdom": "extractMediaWisdom",
    "extractWisdom": "extractMediaWisdom",
    "somatic_healing_session": "somaticHealingSession",
    "comprehensivePersonalDevelopment": "somaticHealingSession",
    "personalDevelopmentSession": "somaticHealingSession",
    "autoSuggestRitual": "somaticHealingSession",
    "wisdom_synthesis": "synthesizeWisdom",
    "daily_synthesis": "getDailySynthesis",
    "pattern_recognition": "recognizePatterns",
    "expose_contradictions": "recognizePatterns",
    "autonomousPatternDetect": "recognizePatterns",
    "combBehavioralAnalysis": "recognizePatterns",
    "standing_tall_practice": "standingTallPractice",
    "values_clarification": "clarifyValues",
    "creativity_unleash": "unleashCreativity",
    "abundance_cultivate": "cultivateAbundance",
    "transitions_navigate": "navigateTransitions",
    "navigateTransition": "navigateTransitions",
    "ancestry_heal": "healAncestry",
    "interpret_dream": "interpretDream",
    "optimize_energy": "optimizeEnergy",
    # System
    "system_health_check": "systemHealthCheck",
    "healthCheck": "systemHealthCheck",
    "readinessCheck": "systemHealthCheck",
    "getMetrics": "systemHealthCheck",
    "getMonitoringMetrics": "systemHealthCheck",
    "globalErrorHandler": "systemHealthCheck",
    "scheduledTriggerError": "systemHealthCheck",
    "arkSystemStatus": "systemHealthCheck",
    "generate_discovery_inquiry": "generateDiscoveryInquiry",
    "generateInquiry": "generateDiscoveryInquiry",
    "socraticQuestions": "generateDiscoveryInquiry",
    "submit_feedback": "submitFeedback",
    "manage_commitment": "manageCommitment",
    "transformation_contract": "manageCommitment",
    "list_active_commitments": "listActiveCommitments",
    "track_mood_and_emotions": "trackMoodAndEmotions",
    "trackMood": "trackMoodAndEmotions",
    "set_personal_goals": "setPersonalGoals",
    "design_habits": "designHabits",
    "query_d1_database": "queryD1Database",
    "store_in_kv": "storeInKV",
    "upsert_vectors": "upsertVectors",
}
